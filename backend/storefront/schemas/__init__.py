from .product import ProductWithPromotion, CategorySummary, ParentCategorySummary
from .promotion import ResolvedPromotion, PromotionCreate
from .variant import ResolvedCombination, CascadeResult, CascadeFailureItem, PriceSource

__all__ = [
    "ProductWithPromotion", "CategorySummary", "ParentCategorySummary",
    "ResolvedPromotion", "PromotionCreate",
    "ResolvedCombination", "CascadeResult", "CascadeFailureItem", "PriceSource",
]
