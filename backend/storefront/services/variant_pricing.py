from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Iterable, Mapping, Sequence, Tuple, Union, NamedTuple
from storefront.models.variant import (
    ProductVariant,
    ProductVariantCombination,
    ProductVariantGroupPrice,
)
from storefront.schemas.variant import ResolvedCombination, PriceSource
from storefront.services.pricing import to_decimal

GroupPrices = Union[Mapping[int, Decimal], Iterable[ProductVariantGroupPrice]]


class CascadePlan(NamedTuple):
    updates: Dict[int, Decimal]  # combination_id -> новая resolved_price
    skipped_ids: List[int]  # есть индивидуальная цена


def variant_order_key(variant: ProductVariant):
    # Порядок создания вариантов продукта
    return (variant.created_at or datetime.min, variant.id or 0)


def order_value_ids(value_ids: Iterable[int], variants: Sequence[ProductVariant]) -> List[int]:
    """Упорядочить значения комбинации по порядку создания вариантов"""
    wanted = set(value_ids)
    ordered = []
    for variant in sorted(variants, key=variant_order_key):
        for value in sorted(variant.values, key=lambda v: (v.position, v.id or 0)):
            if value.id in wanted:
                ordered.append(value.id)
    # Значения вне известных вариантов идут в конец
    ordered.extend(sorted(wanted.difference(ordered)))
    return ordered


def group_price_map(group_prices: GroupPrices) -> Dict[int, Decimal]:
    if isinstance(group_prices, Mapping):
        return {value_id: to_decimal(price) for value_id, price in group_prices.items()}
    return {gp.variant_value_id: to_decimal(gp.group_price) for gp in group_prices}


def resolve_price(
    combination_price: Optional[Decimal],
    ordered_value_ids: Sequence[int],
    group_prices: Mapping[int, Decimal],
    base_price: Optional[Decimal],
) -> Tuple[Optional[Decimal], Optional[PriceSource]]:
    """Индивидуальная -> первая групповая -> базовая"""
    if combination_price is not None:
        return to_decimal(combination_price), PriceSource.COMBINATION

    for value_id in ordered_value_ids:
        group_price = group_prices.get(value_id)
        if group_price is not None:
            return to_decimal(group_price), PriceSource.GROUP

    if base_price is not None:
        return to_decimal(base_price), PriceSource.BASE

    return None, None


def resolve_combination(
    combination: ProductVariantCombination,
    ordered_value_ids: Sequence[int],
    group_prices: GroupPrices,
    base_price: Optional[Decimal],
) -> ResolvedCombination:
    """
    Эффективная цена одной комбинации.
    Остаток и активность берутся из самой комбинации, групповые цены на них не влияют.
    """
    price, source = resolve_price(
        combination.price,
        ordered_value_ids,
        group_price_map(group_prices),
        base_price,
    )

    return ResolvedCombination(
        id=combination.id,
        product_id=combination.product_id,
        value_ids=list(ordered_value_ids),
        sku=combination.sku,
        price=combination.price,
        compare_at_price=combination.compare_at_price,
        cost_per_item=combination.cost_per_item,
        stock_quantity=combination.stock_quantity,
        is_active=combination.is_active,
        resolved_price=price,
        resolved_stock=combination.stock_quantity,
        resolved_active=combination.is_active,
        price_source=source,
    )


def plan_group_price_cascade(
    combinations: Iterable[Tuple[ProductVariantCombination, Iterable[int]]],
    variant_value_id: int,
    group_price: Decimal,
) -> CascadePlan:
    """
    Какие комбинации получают новую групповую цену.
    Трогаем только комбинации со значением variant_value_id и без индивидуальной цены;
    им записывается именно новая групповая цена.
    """
    group_price = to_decimal(group_price)
    updates = {}
    skipped = []

    for combination, value_ids in combinations:
        if variant_value_id not in set(value_ids):
            continue
        if combination.price is not None:
            skipped.append(combination.id)
            continue

        updates[combination.id] = group_price

    return CascadePlan(updates=updates, skipped_ids=skipped)
