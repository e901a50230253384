import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Iterable, NamedTuple
from storefront.models.product import Product
from storefront.models.promotion import Promotion, PromotionScope
from storefront.schemas.promotion import ResolvedPromotion
from storefront.services.pricing import (
    calculate_promotional_price,
    calculate_discount_percentage,
    to_decimal,
)
from storefront.services.promotion_status import is_promotion_active

logger = logging.getLogger(__name__)


# Приоритет scope: product > category > global, priority акции его не перебивает
SCOPE_PRIORITY = {
    PromotionScope.PRODUCT: 3,
    PromotionScope.CATEGORY: 2,
    PromotionScope.GLOBAL: 1,
}


class PromotionsByScope(NamedTuple):
    product_promotions: List[Promotion]
    category_promotions: List[Promotion]
    global_promotions: List[Promotion]


def partition_promotions(promotions: Iterable[Promotion]) -> PromotionsByScope:
    """Разложить акции магазина по scope один раз на всю выборку"""
    by_scope = {scope: [] for scope in SCOPE_PRIORITY}
    for promo in promotions:
        by_scope[PromotionScope(promo.promotion_type)].append(promo)

    return PromotionsByScope(
        product_promotions=by_scope[PromotionScope.PRODUCT],
        category_promotions=by_scope[PromotionScope.CATEGORY],
        global_promotions=by_scope[PromotionScope.GLOBAL],
    )


def promotions_for_product(product: Product, partitioned: PromotionsByScope) -> PromotionsByScope:
    """Оставить только акции, чьи цели включают продукт"""
    return PromotionsByScope(
        product_promotions=[p for p in partitioned.product_promotions if p.applies_to(product)],
        category_promotions=[p for p in partitioned.category_promotions if p.applies_to(product)],
        global_promotions=list(partitioned.global_promotions),
    )


def _selection_key(promo: Promotion):
    # priority, затем самая свежая, затем id: выбор всегда детерминирован
    return (
        promo.priority or 0,
        promo.created_at or datetime.min,
        promo.id or 0,
    )


def select_best_promotion(promotions: List[Promotion]) -> Optional[Promotion]:
    """Лучшая акция внутри одного scope"""
    if not promotions:
        return None
    return max(promotions, key=_selection_key)


def build_resolved_promotion(
    product: Product,
    promo: Promotion,
    scope: PromotionScope,
) -> Optional[ResolvedPromotion]:
    """
    Посчитать цену по выбранной акции.
    Возвращает None, если акция не даёт реальной скидки.
    """
    price = to_decimal(product.price)

    if promo.compare_at_price is not None:
        # Режим сравнения: цена не меняется, discount_type/value игнорируются
        original = to_decimal(promo.compare_at_price)
        if original <= price:
            logger.warning(
                "Promotion %s compare_at_price %s is not above product %s price %s, ignored",
                promo.id, original, product.id, price,
            )
            return None
        promotional = price
        compare_at_price = original
    else:
        promotional = calculate_promotional_price(price, promo.discount_type, promo.discount_value)
        if promotional >= price:
            logger.warning(
                "Promotion %s does not lower product %s price %s, ignored",
                promo.id, product.id, price,
            )
            return None
        original = price
        compare_at_price = None

    return ResolvedPromotion(
        id=promo.id,
        name=promo.name,
        promotion_type=scope,
        discount_type=promo.discount_type,
        discount_value=to_decimal(promo.discount_value),
        priority=promo.priority or 0,
        promotional_price=promotional,
        compare_at_price=compare_at_price,
        original_price=original,
        savings=original - promotional,
        discount_percent=calculate_discount_percentage(original, promotional),
    )


def resolve_best_promotion(
    product: Product,
    product_promotions: List[Promotion],
    category_promotions: List[Promotion],
    global_promotions: List[Promotion],
    now: datetime,
) -> Optional[ResolvedPromotion]:
    """
    Выбрать одну применимую акцию для продукта:
    1. Только акции, активные на момент now
    2. Сначала по scope (product > category > global)
    3. Внутри scope: priority, затем более поздняя created_at
    """
    if product.price is None or to_decimal(product.price) <= Decimal("0"):
        return None

    ordered = (
        (PromotionScope.PRODUCT, product_promotions),
        (PromotionScope.CATEGORY, category_promotions),
        (PromotionScope.GLOBAL, global_promotions),
    )

    for scope, promotions in ordered:
        active = [p for p in promotions or [] if is_promotion_active(p, now)]
        best = select_best_promotion(active)
        if best is None:
            continue

        logger.debug("Product %s: %s promotion %s selected", product.id, scope.value, best.id)
        # Победивший scope не уступает нижним, даже если скидка не сработала
        return build_resolved_promotion(product, best, scope)

    return None


def resolve_for_product(
    product: Product,
    partitioned: PromotionsByScope,
    now: datetime,
) -> Optional[ResolvedPromotion]:
    scoped = promotions_for_product(product, partitioned)
    return resolve_best_promotion(
        product,
        scoped.product_promotions,
        scoped.category_promotions,
        scoped.global_promotions,
        now,
    )
