from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal

class CartLine(BaseModel):
    id: str
    name: str
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(default=1, ge=0)
    image: str = ""
    material: str = ""
    category: str = ""

class CartSummaryRequest(BaseModel):
    items: List[CartLine] = []
    voucher_code: Optional[str] = Field(None, alias="voucherCode")

    class Config:
        populate_by_name = True

class WishlistLine(BaseModel):
    id: str
    name: str
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    image: str = ""
    material: str = ""
    category: str = ""

class WishlistSummaryRequest(BaseModel):
    items: List[WishlistLine] = []
    remove_ids: List[str] = Field(default_factory=list, alias="removeIds")

    class Config:
        populate_by_name = True
