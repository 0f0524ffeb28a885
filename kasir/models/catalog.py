"""
Catalog models: products and cart lines.
"""
import enum

from pydantic import Field, field_validator

from kasir.models.base import Record


class ProductCategory(str, enum.Enum):
    """Product category enumeration."""
    SUSU = "susu"
    PAMPERS = "pampers"
    KOSMETIK = "kosmetik"
    PERLENGKAPAN = "perlengkapan"
    MAKANAN = "makanan"
    UNCATEGORIZED = "uncategorized"


class Product(Record):
    """A sellable item. Prices are whole rupiah."""

    id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1)
    price: int = Field(..., ge=0)
    category: ProductCategory = ProductCategory.UNCATEGORIZED
    barcode: str = ""
    image: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v):
        if isinstance(v, ProductCategory):
            return v
        try:
            return ProductCategory(str(v).lower())
        except ValueError:
            return ProductCategory.UNCATEGORIZED

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"


class CartLine(Product):
    """Product snapshot plus the quantity being bought."""

    quantity: int = Field(..., gt=0)

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> "CartLine":
        return cls(**product.model_dump(), quantity=quantity)

    def __repr__(self):
        return f"<CartLine(id={self.id}, name='{self.name}', quantity={self.quantity})>"
