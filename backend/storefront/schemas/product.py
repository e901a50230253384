from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from decimal import Decimal
from storefront.schemas.promotion import ResolvedPromotion


class ParentCategorySummary(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class CategorySummary(BaseModel):
    """Категория для хлебных крошек"""
    id: int
    name: str
    parent_category: Optional[ParentCategorySummary] = None


class ProductWithPromotion(BaseModel):
    """Карточка продукта с вычисленной акцией"""
    id: int
    store_id: int
    name: str
    sku: Optional[str] = None
    
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    category_id: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    
    promotion: Optional[ResolvedPromotion] = None
    category: Optional[CategorySummary] = None

    @property
    def final_price(self) -> Decimal:
        if self.promotion:
            return self.promotion.promotional_price
        return self.price
