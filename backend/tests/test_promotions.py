from datetime import timedelta
from decimal import Decimal

from storefront.models.promotion import DiscountType, PromotionScope
from storefront.services.promotions import (
    partition_promotions,
    promotions_for_product,
    resolve_best_promotion,
    resolve_for_product,
    select_best_promotion,
)

from conftest import NOW, make_product, make_promotion


def product_promo(product, **overrides):
    return make_promotion(promotion_type=PromotionScope.PRODUCT, product_ids=[product.id], **overrides)


def category_promo(category_id, **overrides):
    return make_promotion(promotion_type=PromotionScope.CATEGORY, category_ids=[category_id], **overrides)


class TestScopePrecedence:
    """Product scope beats category scope beats global, whatever the priority."""

    def test_product_scope_beats_higher_priority_category(self) -> None:
        product = make_product(price=Decimal("100"), category_id=7)
        by_product = product_promo(product, priority=1, discount_value=Decimal("20"))
        by_category = category_promo(7, priority=100, discount_value=Decimal("10"))

        resolved = resolve_best_promotion(product, [by_product], [by_category], [], NOW)

        assert resolved is not None
        assert resolved.id == by_product.id
        assert resolved.promotion_type == PromotionScope.PRODUCT
        assert resolved.promotional_price == Decimal("80")

    def test_category_beats_global(self) -> None:
        product = make_product(category_id=7)
        by_category = category_promo(7, discount_value=Decimal("5"))
        store_wide = make_promotion(priority=50, discount_value=Decimal("40"))

        resolved = resolve_best_promotion(product, [], [by_category], [store_wide], NOW)

        assert resolved.id == by_category.id
        assert resolved.promotional_price == Decimal("95")

    def test_global_when_nothing_else(self) -> None:
        product = make_product()
        store_wide = make_promotion(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("15"))

        resolved = resolve_best_promotion(product, [], [], [store_wide], NOW)

        assert resolved.promotion_type == PromotionScope.GLOBAL
        assert resolved.promotional_price == Decimal("85")
        assert resolved.savings == Decimal("15")
        assert resolved.discount_percent == 15

    def test_inactive_higher_scope_falls_through(self) -> None:
        product = make_product()
        expired = product_promo(
            product,
            start_date=NOW - timedelta(days=10),
            end_date=NOW - timedelta(days=5),
        )
        store_wide = make_promotion(discount_value=Decimal("10"))

        resolved = resolve_best_promotion(product, [expired], [], [store_wide], NOW)

        assert resolved.id == store_wide.id

    def test_disabled_promotion_inside_window_is_ignored(self) -> None:
        product = make_product()
        disabled = product_promo(product, is_active=False)

        assert resolve_best_promotion(product, [disabled], [], [], NOW) is None

    def test_no_active_promotions(self) -> None:
        product = make_product()
        scheduled = make_promotion(start_date=NOW + timedelta(days=1), end_date=NOW + timedelta(days=2))

        assert resolve_best_promotion(product, [], [], [scheduled], NOW) is None
        assert resolve_best_promotion(product, [], [], [], NOW) is None


class TestSameScopeTieBreak:
    """Priority first, then the most recently created promotion."""

    def test_highest_priority_wins(self) -> None:
        product = make_product(category_id=3)
        low = category_promo(3, priority=1, discount_value=Decimal("50"))
        high = category_promo(3, priority=9, discount_value=Decimal("5"))

        resolved = resolve_best_promotion(product, [], [low, high], [], NOW)

        assert resolved.id == high.id

    def test_equal_priority_most_recent_wins(self) -> None:
        product = make_product(category_id=3)
        older = category_promo(3, priority=5, created_at=NOW - timedelta(days=3))
        newer = category_promo(3, priority=5, created_at=NOW - timedelta(hours=1))

        assert resolve_best_promotion(product, [], [older, newer], [], NOW).id == newer.id
        assert resolve_best_promotion(product, [], [newer, older], [], NOW).id == newer.id

    def test_select_best_promotion_empty(self) -> None:
        assert select_best_promotion([]) is None


class TestComparisonMode:
    """compare_at_price keeps the product price and shows a reference price."""

    def test_reference_price_and_savings(self) -> None:
        product = make_product(price=Decimal("100"))
        promo = product_promo(
            product,
            compare_at_price=Decimal("150"),
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("90"),
        )

        resolved = resolve_best_promotion(product, [promo], [], [], NOW)

        assert resolved.promotional_price == Decimal("100")
        assert resolved.original_price == Decimal("150")
        assert resolved.compare_at_price == Decimal("150")
        assert resolved.savings == Decimal("50")

    def test_reference_not_above_price_is_ignored(self) -> None:
        product = make_product(price=Decimal("100"))
        promo = make_promotion(compare_at_price=Decimal("90"))

        assert resolve_best_promotion(product, [], [], [promo], NOW) is None


class TestClamping:
    """A promotion that does not lower the price resolves to no promotion."""

    def test_zero_fixed_discount_is_not_applicable(self) -> None:
        product = make_product(price=Decimal("100"))
        promo = make_promotion(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("0"))

        assert resolve_best_promotion(product, [], [], [promo], NOW) is None

    def test_misconfigured_winner_does_not_fall_back_to_lower_scope(self) -> None:
        product = make_product(price=Decimal("100"))
        broken = product_promo(product, discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("0"))
        store_wide = make_promotion(discount_value=Decimal("10"))

        assert resolve_best_promotion(product, [broken], [], [store_wide], NOW) is None

    def test_fixed_discount_above_price_clamps_to_zero(self) -> None:
        product = make_product(price=Decimal("20"))
        promo = make_promotion(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("35"))

        resolved = resolve_best_promotion(product, [], [], [promo], NOW)

        assert resolved.promotional_price == Decimal("0")
        assert resolved.discount_percent == 100

    def test_non_positive_product_price(self) -> None:
        product = make_product(price=Decimal("0"))
        assert resolve_best_promotion(product, [], [], [make_promotion()], NOW) is None


class TestPartitioning:
    """Store promotions are split by scope once and narrowed per product."""

    def test_partition_and_narrow(self) -> None:
        product = make_product(category_id=4)
        other = make_product(category_id=5)
        promotions = [
            product_promo(product),
            product_promo(other),
            category_promo(4),
            category_promo(5),
            make_promotion(),
        ]

        partitioned = partition_promotions(promotions)
        assert len(partitioned.product_promotions) == 2
        assert len(partitioned.category_promotions) == 2
        assert len(partitioned.global_promotions) == 1

        scoped = promotions_for_product(product, partitioned)
        assert [p.product_ids for p in scoped.product_promotions] == [[product.id]]
        assert [p.category_ids for p in scoped.category_promotions] == [[4]]
        assert len(scoped.global_promotions) == 1

    def test_category_promotion_skips_uncategorized_product(self) -> None:
        product = make_product(category_id=None)
        partitioned = partition_promotions([category_promo(4, discount_value=Decimal("30"))])

        assert resolve_for_product(product, partitioned, NOW) is None

    def test_resolve_for_product(self) -> None:
        product = make_product(price=Decimal("100"), category_id=4)
        partitioned = partition_promotions([
            category_promo(4, discount_value=Decimal("25")),
            make_promotion(discount_value=Decimal("50")),
        ])

        resolved = resolve_for_product(product, partitioned, NOW)

        assert resolved.promotion_type == PromotionScope.CATEGORY
        assert resolved.promotional_price == Decimal("75")

    def test_resolution_never_mutates_promotions(self) -> None:
        product = make_product()
        promo = make_promotion()
        before = promo.model_dump()

        resolve_best_promotion(product, [], [], [promo], NOW)

        assert promo.model_dump() == before
