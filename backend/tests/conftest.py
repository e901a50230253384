"""Shared pytest fixtures: in-memory database and record factories."""

from datetime import datetime, timedelta
from decimal import Decimal
from itertools import count

import pytest
from sqlmodel import Session

from storefront.db.session import create_db_engine, init_db
from storefront.models import (
    Category,
    DiscountType,
    Product,
    ProductVariant,
    ProductVariantValue,
    Promotion,
    PromotionScope,
)

NOW = datetime(2024, 6, 15, 12, 0, 0)

_ids = count(1000)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://", echo=False)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


def make_product(**overrides) -> Product:
    """In-memory product, no session needed."""
    data = {
        "id": next(_ids),
        "store_id": 1,
        "name": "Camiseta",
        "price": Decimal("100"),
        "category_id": None,
    }
    data.update(overrides)
    return Product(**data)


def make_promotion(**overrides) -> Promotion:
    data = {
        "id": next(_ids),
        "store_id": 1,
        "name": "Promo",
        "promotion_type": PromotionScope.GLOBAL,
        "discount_type": DiscountType.PERCENTAGE,
        "discount_value": Decimal("10"),
        "start_date": NOW - timedelta(days=1),
        "end_date": NOW + timedelta(days=1),
        "priority": 0,
        "is_active": True,
        "created_at": NOW - timedelta(days=2),
    }
    data.update(overrides)
    return Promotion(**data)


@pytest.fixture
def product_with_variants(db):
    """
    Product priced 30 with two variants created in order:
    Tamanho (P, M) and Cor (Azul, Verde, Preto).
    """
    product = Product(store_id=1, name="Camiseta", price=Decimal("30"))
    db.add(product)
    db.commit()
    db.refresh(product)

    size = ProductVariant(product_id=product.id, name="Tamanho", created_at=NOW - timedelta(hours=2))
    color = ProductVariant(product_id=product.id, name="Cor", created_at=NOW - timedelta(hours=1))
    db.add(size)
    db.add(color)
    db.commit()

    for position, value in enumerate(["P", "M"]):
        db.add(ProductVariantValue(variant_id=size.id, value=value, position=position))
    for position, value in enumerate(["Azul", "Verde", "Preto"]):
        db.add(ProductVariantValue(variant_id=color.id, value=value, position=position))
    db.commit()
    db.refresh(size)
    db.refresh(color)

    return product, size, color


@pytest.fixture
def category_tree(db):
    """Two parent categories with two children each."""
    roupas = Category(store_id=1, name="Roupas")
    calcados = Category(store_id=1, name="Calçados")
    db.add(roupas)
    db.add(calcados)
    db.commit()

    children = [
        Category(store_id=1, name="Camisetas", parent_id=roupas.id),
        Category(store_id=1, name="Calças", parent_id=roupas.id),
        Category(store_id=1, name="Tênis", parent_id=calcados.id),
        Category(store_id=1, name="Sandálias", parent_id=calcados.id),
    ]
    for child in children:
        db.add(child)
    db.commit()
    for child in children:
        db.refresh(child)

    return {"roupas": roupas, "calcados": calcados, "children": children}
