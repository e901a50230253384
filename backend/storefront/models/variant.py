from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from decimal import Decimal

if TYPE_CHECKING:
    from .product import Product


class CombinationValueLink(SQLModel, table=True):
    __tablename__ = "product_variant_combination_values"
    
    combination_id: Optional[int] = Field(
        default=None, foreign_key="product_variant_combinations.id", primary_key=True
    )
    variant_value_id: Optional[int] = Field(
        default=None, foreign_key="product_variant_values.id", primary_key=True
    )


class ProductVariant(SQLModel, table=True):
    __tablename__ = "product_variants"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    name: str  # "Tamanho", "Cor"
    position: int = Field(default=0)
    
    created_at: datetime = Field(default_factory=datetime.utcnow)
    
    # Relationships
    product: Optional["Product"] = Relationship(back_populates="variants")
    values: List["ProductVariantValue"] = Relationship(back_populates="variant")


class ProductVariantValue(SQLModel, table=True):
    __tablename__ = "product_variant_values"
    
    id: Optional[int] = Field(default=None, primary_key=True)
    variant_id: int = Field(foreign_key="product_variants.id", index=True)
    value: str  # "M", "Vermelho"
    position: int = Field(default=0)
    
    # Relationships
    variant: Optional["ProductVariant"] = Relationship(back_populates="values")
    combinations: List["ProductVariantCombination"] = Relationship(
        back_populates="values", link_model=CombinationValueLink
    )


class ProductVariantCombination(SQLModel, table=True):
    __tablename__ = "product_variant_combinations"
    __table_args__ = (
        UniqueConstraint("product_id", "value_key", name="uq_combination_values"),
    )
    
    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    
    # Канонический ключ: отсортированные id значений, "3-7-12"
    value_key: str = Field(index=True)
    sku: Optional[str] = None
    
    # Индивидуальная цена; None = берём групповую или базовую
    price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    compare_at_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    cost_per_item: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    
    # Результат каскада групповой цены, читается корзиной и чекаутом
    resolved_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    
    stock_quantity: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True)
    
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    
    # Relationships
    product: Optional["Product"] = Relationship(back_populates="combinations")
    values: List["ProductVariantValue"] = Relationship(
        back_populates="combinations", link_model=CombinationValueLink
    )


class ProductVariantGroupPrice(SQLModel, table=True):
    __tablename__ = "product_variant_group_prices"
    __table_args__ = (
        UniqueConstraint("product_id", "variant_value_id", name="uq_group_price_value"),
    )
    
    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    variant_value_id: int = Field(foreign_key="product_variant_values.id", index=True)
    group_price: Decimal = Field(max_digits=10, decimal_places=2)
    
    updated_at: datetime = Field(default_factory=datetime.utcnow)
