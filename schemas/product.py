from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from models.product import ProductStatus

class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Product name")
    description: Optional[str] = Field(None, max_length=5000, description="Product description")
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Product price must be greater than 0")
    stock: int = Field(default=0, ge=0, description="Stock must be non-negative")
    status: ProductStatus = Field(default=ProductStatus.ACTIVE)
    category_id: Optional[str] = None
    material_id: Optional[str] = None
    featured: bool = False
    images: List[str] = Field(default_factory=list, description="Product image URLs")

    @validator('name')
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Product name cannot be empty')
        return v.strip()

    @validator('description')
    def validate_description(cls, v):
        if v is not None:
            return v.strip()
        return v

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None
    category_id: Optional[str] = None
    material_id: Optional[str] = None
    featured: Optional[bool] = None
    images: Optional[List[str]] = None

    @validator('name', 'price', 'stock', 'status', 'featured', 'images', pre=True)
    def reject_null(cls, v):
        if v is None:
            raise ValueError('Field cannot be null; omit it to keep the current value')
        return v

    @validator('name')
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Product name cannot be empty')
        return v.strip() if v else v

class NamedRef(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True

class ProductResponse(BaseModel):
    id: str
    seller_id: str
    name: str
    description: Optional[str]
    price: float
    stock: int
    status: ProductStatus
    featured: bool
    images: List[str] = []
    category: Optional[NamedRef] = None
    material: Optional[NamedRef] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_product(cls, product) -> "ProductResponse":
        return cls(
            id=product.id,
            seller_id=product.seller_id,
            name=product.name,
            description=product.description,
            price=float(product.price),
            stock=product.stock,
            status=product.status,
            featured=bool(product.featured),
            images=product.image_list,
            category=NamedRef.from_orm(product.category) if product.category else None,
            material=NamedRef.from_orm(product.material) if product.material else None,
            created_at=product.created_at,
            updated_at=product.updated_at
        )

class PriceRange(BaseModel):
    min: int
    max: int
