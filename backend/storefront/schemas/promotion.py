from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from storefront.models.promotion import PromotionScope, DiscountType, PromotionStatus


class ResolvedPromotion(BaseModel):
    """Акция, выбранная для продукта на момент расчёта"""
    id: Optional[int] = None
    name: str
    promotion_type: PromotionScope
    discount_type: DiscountType
    discount_value: Decimal
    priority: int = 0
    
    # Цена, которую видит и платит покупатель
    promotional_price: Decimal
    # Режим сравнения: "было" из акции
    compare_at_price: Optional[Decimal] = None
    original_price: Decimal
    savings: Decimal
    discount_percent: int


class PromotionCreate(BaseModel):
    store_id: int
    name: str = Field(min_length=1)
    description: Optional[str] = None
    promotion_type: PromotionScope = PromotionScope.GLOBAL
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(gt=0)
    compare_at_price: Optional[Decimal] = Field(default=None, gt=0)
    product_ids: List[int] = []
    category_ids: List[int] = []
    start_date: datetime
    end_date: datetime
    priority: int = Field(default=0, ge=0)
    is_active: bool = True
    status: Optional[PromotionStatus] = None

    @model_validator(mode="after")
    def check_rules(self):
        if not self.name.strip():
            raise ValueError("Promotion name is required")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100%")
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        if self.promotion_type == PromotionScope.PRODUCT and not self.product_ids:
            raise ValueError("At least one product must be selected for product promotions")
        if self.promotion_type == PromotionScope.CATEGORY and not self.category_ids:
            raise ValueError("At least one category must be selected for category promotions")
        return self
