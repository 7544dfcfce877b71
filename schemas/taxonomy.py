from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

# Categories and materials share one shape: a seller-owned, named label
# attached to products.

class TaxonomyCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=1000)

    @validator('name')
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Name is required')
        return v.strip()

    @validator('description')
    def validate_description(cls, v):
        if v is None:
            return v
        return v.strip() or None

class TaxonomyUpdate(TaxonomyCreate):
    active: Optional[bool] = None

class TaxonomyResponse(BaseModel):
    id: str
    seller_id: str
    name: str
    description: Optional[str] = None
    active: bool
    product_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class TaxonomyPublic(BaseModel):
    id: str
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True
