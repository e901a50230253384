from .category import Category
from .product import Product
from .promotion import Promotion, PromotionScope, DiscountType, PromotionStatus
from .variant import (
    ProductVariant,
    ProductVariantValue,
    ProductVariantCombination,
    ProductVariantGroupPrice,
    CombinationValueLink,
)

__all__ = [
    "Category",
    "Product",
    "Promotion", "PromotionScope", "DiscountType", "PromotionStatus",
    "ProductVariant", "ProductVariantValue", "ProductVariantCombination",
    "ProductVariantGroupPrice", "CombinationValueLink",
]
