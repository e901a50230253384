import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Iterable
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select
from storefront.core.exceptions import NotFoundError, StorefrontError
from storefront.models.product import Product
from storefront.models.variant import (
    ProductVariant,
    ProductVariantValue,
    ProductVariantCombination,
    ProductVariantGroupPrice,
)
from storefront.schemas.variant import ResolvedCombination, CascadeResult, CascadeFailureItem
from storefront.services.combinatorics import (
    validate_value_lists,
    missing_combinations,
    format_value_key,
    parse_value_key,
)
from storefront.services.pricing import to_decimal
from storefront.services.variant_pricing import (
    variant_order_key,
    order_value_ids,
    group_price_map,
    resolve_price,
    resolve_combination,
    plan_group_price_cascade,
)

logger = logging.getLogger(__name__)

COMBINATION_FIELDS = {"sku", "price", "compare_at_price", "cost_per_item", "stock_quantity", "is_active"}


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return product


def get_variants(db: Session, product_id: int) -> List[ProductVariant]:
    """Варианты продукта в порядке создания"""
    stmt = (
        select(ProductVariant)
        .options(selectinload(ProductVariant.values))
        .where(ProductVariant.product_id == product_id)
    )
    return sorted(db.exec(stmt).all(), key=variant_order_key)


def get_combinations(db: Session, product_id: int) -> List[ProductVariantCombination]:
    stmt = (
        select(ProductVariantCombination)
        .options(selectinload(ProductVariantCombination.values))
        .where(ProductVariantCombination.product_id == product_id)
        .order_by(ProductVariantCombination.id)
    )
    return list(db.exec(stmt).all())


def get_group_prices(db: Session, product_id: int) -> List[ProductVariantGroupPrice]:
    stmt = select(ProductVariantGroupPrice).where(ProductVariantGroupPrice.product_id == product_id)
    return list(db.exec(stmt).all())


def generate_all_combinations(db: Session, product_id: int) -> List[ProductVariantCombination]:
    """
    Создать недостающие комбинации всех значений вариантов.
    Повторный вызов ничего не дублирует: сравниваем наборы id, а не порядок.
    """
    product = get_product(db, product_id)
    variants = get_variants(db, product_id)
    if not variants:
        return []

    # Пустой вариант отклоняем до генерации, частичных наборов не бывает
    validate_value_lists({v.name: [val.id for val in v.values] for v in variants})

    value_lists = [
        [val.id for val in sorted(v.values, key=lambda val: (val.position, val.id))]
        for v in variants
    ]
    values_by_id = {val.id: val for v in variants for val in v.values}
    group_prices = group_price_map(get_group_prices(db, product_id))
    existing = [parse_value_key(c.value_key) for c in get_combinations(db, product_id)]

    created = []
    for value_ids in missing_combinations(value_lists, existing):
        ordered = order_value_ids(value_ids, variants)
        resolved_price, _ = resolve_price(None, ordered, group_prices, product.price)
        combination = ProductVariantCombination(
            product_id=product_id,
            value_key=format_value_key(value_ids),
            resolved_price=resolved_price,
            stock_quantity=0,
            is_active=True,
        )
        combination.values = [values_by_id[i] for i in ordered]
        db.add(combination)
        created.append(combination)

    db.commit()
    for combination in created:
        db.refresh(combination)

    logger.info(
        "Product %s: %d combinations created, %d already existed",
        product_id, len(created), len(existing),
    )
    return created


def create_combination(
    db: Session,
    product_id: int,
    variant_value_ids: Iterable[int],
    price: Optional[Decimal] = None,
    compare_at_price: Optional[Decimal] = None,
    cost_per_item: Optional[Decimal] = None,
    stock_quantity: int = 0,
    is_active: bool = True,
    sku: Optional[str] = None,
) -> ProductVariantCombination:
    product = get_product(db, product_id)
    value_ids = sorted(set(variant_value_ids))
    value_key = format_value_key(value_ids)

    existing = db.exec(
        select(ProductVariantCombination).where(
            ProductVariantCombination.product_id == product_id,
            ProductVariantCombination.value_key == value_key,
        )
    ).first()
    if existing:
        raise StorefrontError(
            f"Combination {value_key} already exists for product {product_id}",
            code="duplicate_combination",
        )

    if stock_quantity < 0:
        raise StorefrontError("Stock quantity cannot be negative", code="invalid_stock")

    values = [db.get(ProductVariantValue, value_id) for value_id in value_ids]
    if any(v is None for v in values):
        missing = sorted(i for i, v in zip(value_ids, values) if v is None)
        raise NotFoundError("Variant value", missing)

    combination = ProductVariantCombination(
        product_id=product_id,
        value_key=value_key,
        sku=sku,
        price=price,
        compare_at_price=compare_at_price,
        cost_per_item=cost_per_item,
        stock_quantity=stock_quantity,
        is_active=is_active,
    )
    combination.values = values
    combination.resolved_price = persisted_price(db, product, combination)
    db.add(combination)
    db.commit()
    db.refresh(combination)
    return combination


def persisted_price(
    db: Session,
    product: Product,
    combination: ProductVariantCombination,
) -> Optional[Decimal]:
    """Цена для resolved_price: индивидуальная, иначе первая групповая, иначе базовая"""
    ordered = order_value_ids((v.id for v in combination.values), get_variants(db, product.id))
    price, _ = resolve_price(
        combination.price,
        ordered,
        group_price_map(get_group_prices(db, product.id)),
        product.price,
    )
    return price


def get_combination(db: Session, combination_id: int) -> ProductVariantCombination:
    combination = db.get(ProductVariantCombination, combination_id)
    if not combination:
        raise NotFoundError("Combination", combination_id)
    return combination


def update_combination(db: Session, combination_id: int, **fields) -> ProductVariantCombination:
    """
    Частичное обновление комбинации.
    price=None снимает индивидуальную цену; resolved_price пересчитывается.
    """
    unknown = set(fields) - COMBINATION_FIELDS
    if unknown:
        raise StorefrontError(
            f"Unknown combination fields: {', '.join(sorted(unknown))}",
            code="invalid_fields",
        )
    if not fields:
        raise StorefrontError("Nothing to update", code="invalid_fields")

    stock_quantity = fields.get("stock_quantity")
    if stock_quantity is not None and stock_quantity < 0:
        raise StorefrontError("Stock quantity cannot be negative", code="invalid_stock")

    combination = get_combination(db, combination_id)
    for name, value in fields.items():
        setattr(combination, name, value)

    if "price" in fields:
        product = get_product(db, combination.product_id)
        combination.resolved_price = persisted_price(db, product, combination)
        logger.info(
            "Combination %s: price %s, resolved %s",
            combination_id, combination.price, combination.resolved_price,
        )

    combination.updated_at = datetime.utcnow()
    db.add(combination)
    db.commit()
    db.refresh(combination)
    return combination


def delete_combination(db: Session, combination_id: int) -> None:
    combination = get_combination(db, combination_id)
    db.delete(combination)
    db.commit()
    logger.info("Combination %s deleted", combination_id)


def list_resolved_combinations(db: Session, product_id: int) -> List[ResolvedCombination]:
    """Комбинации продукта с эффективной ценой"""
    product = get_product(db, product_id)
    variants = get_variants(db, product_id)
    group_prices = get_group_prices(db, product_id)

    return [
        resolve_combination(
            combination,
            order_value_ids((v.id for v in combination.values), variants),
            group_prices,
            product.price,
        )
        for combination in get_combinations(db, product_id)
    ]


def upsert_group_price(
    db: Session,
    product_id: int,
    variant_value_id: int,
    price: Decimal,
) -> ProductVariantGroupPrice:
    group_price = db.exec(
        select(ProductVariantGroupPrice).where(
            ProductVariantGroupPrice.product_id == product_id,
            ProductVariantGroupPrice.variant_value_id == variant_value_id,
        )
    ).first()

    if group_price:
        group_price.group_price = price
        group_price.updated_at = datetime.utcnow()
    else:
        group_price = ProductVariantGroupPrice(
            product_id=product_id,
            variant_value_id=variant_value_id,
            group_price=price,
        )

    db.add(group_price)
    db.commit()
    db.refresh(group_price)
    return group_price


def _update_combination_price(db: Session, combination_id: int, price: Decimal) -> None:
    combination = get_combination(db, combination_id)

    combination.resolved_price = price
    combination.updated_at = datetime.utcnow()
    db.add(combination)
    db.commit()


def apply_group_price(
    db: Session,
    product_id: int,
    variant_value_id: int,
    price: Decimal,
) -> CascadeResult:
    """
    Записать групповую цену и протащить её в комбинации без индивидуальной цены.
    Каждая комбинация коммитится отдельно; ошибки собираются в результат,
    весь каскад можно безопасно повторить.
    """
    get_product(db, product_id)
    variants = get_variants(db, product_id)
    known_values = {val.id for v in variants for val in v.values}
    if variant_value_id not in known_values:
        raise NotFoundError("Variant value", variant_value_id)

    price = to_decimal(price)
    logger.info("Product %s: group price %s for value %s", product_id, price, variant_value_id)
    upsert_group_price(db, product_id, variant_value_id, price)

    combinations = [
        (combination, order_value_ids((v.id for v in combination.values), variants))
        for combination in get_combinations(db, product_id)
    ]
    plan = plan_group_price_cascade(combinations, variant_value_id, price)

    result = CascadeResult(
        product_id=product_id,
        variant_value_id=variant_value_id,
        group_price=price,
        skipped_ids=plan.skipped_ids,
    )

    for combination_id, new_price in plan.updates.items():
        try:
            _update_combination_price(db, combination_id, new_price)
        except (SQLAlchemyError, NotFoundError) as e:
            db.rollback()
            logger.error("Combination %s: group price not applied: %s", combination_id, e)
            result.failures.append(CascadeFailureItem(combination_id=combination_id, error=str(e)))
        else:
            result.updated_ids.append(combination_id)

    if result.failures:
        logger.error(
            "Product %s: group price cascade failed for %d of %d combinations",
            product_id, len(result.failures), len(plan.updates),
        )

    return result
