from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from decimal import Decimal

if TYPE_CHECKING:
    from .category import Category
    from .variant import ProductVariant, ProductVariantCombination


class Product(SQLModel, table=True):
    __tablename__ = "products"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    store_id: int = Field(index=True)
    name: str = Field(index=True)
    sku: Optional[str] = None
    
    price: Decimal = Field(max_digits=10, decimal_places=2)
    # Старая цена для витрины, должна быть больше price
    compare_at_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    
    category_id: Optional[int] = Field(default=None, foreign_key="categories.id", index=True)
    
    is_active: bool = Field(default=True)
    
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    
    # Relationships
    category: Optional["Category"] = Relationship(back_populates="products")
    variants: List["ProductVariant"] = Relationship(back_populates="product")
    combinations: List["ProductVariantCombination"] = Relationship(back_populates="product")
