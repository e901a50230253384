from pydantic import BaseModel
from typing import Optional, List
from decimal import Decimal
from enum import Enum
from storefront.core.exceptions import CascadeFailure


class PriceSource(str, Enum):
    COMBINATION = "combination"
    GROUP = "group"
    BASE = "base"


class ResolvedCombination(BaseModel):
    id: Optional[int] = None
    product_id: int
    value_ids: List[int] = []
    sku: Optional[str] = None
    
    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None
    cost_per_item: Optional[Decimal] = None
    stock_quantity: int = 0
    is_active: bool = True
    
    resolved_price: Optional[Decimal] = None
    resolved_stock: int
    resolved_active: bool
    price_source: Optional[PriceSource] = None


class CascadeFailureItem(BaseModel):
    combination_id: int
    error: str


class CascadeResult(BaseModel):
    """Итог каскада групповой цены по комбинациям"""
    product_id: int
    variant_value_id: int
    group_price: Decimal
    updated_ids: List[int] = []
    skipped_ids: List[int] = []  # с индивидуальной ценой
    failures: List[CascadeFailureItem] = []

    @property
    def failed_ids(self) -> List[int]:
        return [item.combination_id for item in self.failures]

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        if self.failures:
            raise CascadeFailure(self.variant_value_id, self.failed_ids)
