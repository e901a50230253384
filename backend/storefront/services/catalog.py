import logging
from datetime import datetime
from typing import Optional, List, Dict, Iterable
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select, col
from storefront.core.exceptions import NotFoundError
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.promotion import Promotion
from storefront.schemas.product import ProductWithPromotion, CategorySummary, ParentCategorySummary
from storefront.services.promotions import PromotionsByScope, partition_promotions, resolve_for_product

logger = logging.getLogger(__name__)


def get_active_promotions(db: Session, store_id: int, now: datetime) -> List[Promotion]:
    """Акции магазина, чьё окно покрывает now"""
    stmt = select(Promotion).where(
        Promotion.store_id == store_id,
        Promotion.is_active == True,  # noqa: E712
        Promotion.start_date <= now,
        Promotion.end_date >= now,
    )
    return list(db.exec(stmt).all())


def get_parent_categories(db: Session, products: Iterable[Product]) -> Dict[int, Category]:
    """Все родительские категории выборки одним запросом"""
    parent_ids = {
        p.category.parent_id
        for p in products
        if p.category is not None and p.category.parent_id is not None
    }
    if not parent_ids:
        return {}

    parents = db.exec(select(Category).where(col(Category.id).in_(parent_ids))).all()
    return {parent.id: parent for parent in parents}


def build_category_summary(
    category: Optional[Category],
    parents: Dict[int, Category],
) -> Optional[CategorySummary]:
    if category is None:
        return None

    parent = parents.get(category.parent_id) if category.parent_id else None
    return CategorySummary(
        id=category.id,
        name=category.name,
        parent_category=ParentCategorySummary.model_validate(parent) if parent else None,
    )


def build_product_with_promotion(
    product: Product,
    partitioned: PromotionsByScope,
    parents: Dict[int, Category],
    now: datetime,
) -> ProductWithPromotion:
    promotion = resolve_for_product(product, partitioned, now)

    return ProductWithPromotion(
        id=product.id,
        store_id=product.store_id,
        name=product.name,
        sku=product.sku,
        price=product.price,
        compare_at_price=product.compare_at_price,
        category_id=product.category_id,
        is_active=product.is_active,
        created_at=product.created_at,
        promotion=promotion,
        category=build_category_summary(product.category, parents),
    )


def process_products_with_promotions(
    products: List[Product],
    promotions: Iterable[Promotion],
    parents: Dict[int, Category],
    now: datetime,
) -> List[ProductWithPromotion]:
    """Акции раскладываются по scope один раз на всю выборку"""
    if not products:
        return []

    partitioned = partition_promotions(promotions)
    logger.info(
        "Resolving promotions for %d products (%d product, %d category, %d global promotions)",
        len(products),
        len(partitioned.product_promotions),
        len(partitioned.category_promotions),
        len(partitioned.global_promotions),
    )

    return [build_product_with_promotion(p, partitioned, parents, now) for p in products]


def list_products_with_promotions(
    db: Session,
    store_id: int,
    now: Optional[datetime] = None,
    category_id: Optional[int] = None,
    include_inactive: bool = False,
) -> List[ProductWithPromotion]:
    """Список продуктов магазина с вычисленной акцией"""
    now = now or datetime.utcnow()

    stmt = (
        select(Product)
        .options(selectinload(Product.category))
        .where(Product.store_id == store_id)
        .order_by(Product.created_at.desc(), Product.id.desc())
    )
    if not include_inactive:
        stmt = stmt.where(Product.is_active == True)  # noqa: E712
    if category_id is not None:
        stmt = stmt.where(Product.category_id == category_id)

    products = list(db.exec(stmt).all())
    promotions = get_active_promotions(db, store_id, now)
    parents = get_parent_categories(db, products)

    return process_products_with_promotions(products, promotions, parents, now)


def get_product_with_promotion(
    db: Session,
    product_id: int,
    now: Optional[datetime] = None,
) -> ProductWithPromotion:
    now = now or datetime.utcnow()

    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)

    promotions = get_active_promotions(db, product.store_id, now)
    parents = get_parent_categories(db, [product])
    return build_product_with_promotion(product, partition_promotions(promotions), parents, now)
