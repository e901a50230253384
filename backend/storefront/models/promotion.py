from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional, List, FrozenSet, TYPE_CHECKING
from datetime import datetime
from decimal import Decimal
from enum import Enum

if TYPE_CHECKING:
    from .product import Product


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class PromotionScope(str, Enum):
    PRODUCT = "product"
    CATEGORY = "category"
    GLOBAL = "global"


class PromotionStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    EXPIRED = "expired"
    INACTIVE = "inactive"


class Promotion(SQLModel, table=True):
    __tablename__ = "promotions"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    store_id: int = Field(index=True)
    name: str
    description: Optional[str] = None
    
    promotion_type: PromotionScope = Field(default=PromotionScope.GLOBAL)
    priority: int = Field(default=0)  # Выше = важнее, только внутри одного scope
    
    discount_type: DiscountType = Field(default=DiscountType.PERCENTAGE)
    discount_value: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    
    # Режим сравнения: цена товара не меняется, показываем "было"
    compare_at_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    
    # Привязка к продуктам/категориям (JSON array of ids)
    product_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    category_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    
    start_date: datetime
    end_date: datetime
    is_active: bool = Field(default=True)
    status: PromotionStatus = Field(default=PromotionStatus.DRAFT, index=True)
    
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def target_ids(self) -> FrozenSet[int]:
        if self.promotion_type == PromotionScope.PRODUCT:
            return frozenset(self.product_ids or [])
        if self.promotion_type == PromotionScope.CATEGORY:
            return frozenset(self.category_ids or [])
        return frozenset()

    def applies_to(self, product: "Product") -> bool:
        """Относится ли акция к продукту по своему scope"""
        if self.promotion_type == PromotionScope.GLOBAL:
            return True
        if self.promotion_type == PromotionScope.CATEGORY:
            return product.category_id is not None and product.category_id in self.target_ids
        return product.id in self.target_ids
