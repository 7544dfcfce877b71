from pydantic import BaseModel, Field, validator, root_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from models.voucher import VoucherType, VoucherStatus

class VoucherBase(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    type: VoucherType
    value: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    min_order_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    max_discount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    usage_limit: int = Field(..., ge=1)
    start_date: datetime
    end_date: datetime

    @validator('code')
    def normalize_code(cls, v):
        v = v.strip().upper()
        if not v.replace('-', '').replace('_', '').isalnum():
            raise ValueError('Voucher code may only contain letters, digits, dashes and underscores')
        return v

class VoucherCreate(VoucherBase):

    @root_validator(skip_on_failure=True)
    def check_rules(cls, values):
        if values['end_date'] <= values['start_date']:
            raise ValueError('end_date must be after start_date')
        if values['type'] == VoucherType.PERCENTAGE and values['value'] > 100:
            raise ValueError('Percentage vouchers cannot exceed 100')
        return values

class VoucherUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=3, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    type: Optional[VoucherType] = None
    value: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    min_order_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    max_discount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    usage_limit: Optional[int] = Field(None, ge=1)
    status: Optional[VoucherStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @validator(
        'code', 'name', 'type', 'value', 'min_order_amount', 'usage_limit',
        'status', 'start_date', 'end_date', pre=True
    )
    def reject_null(cls, v):
        # only description and max_discount may be cleared
        if v is None:
            raise ValueError('Field cannot be null; omit it to keep the current value')
        return v

    @validator('code')
    def normalize_code(cls, v):
        return v.strip().upper() if v else v

class VoucherResponse(BaseModel):
    id: str
    seller_id: str
    code: str
    name: str
    description: Optional[str] = None
    type: VoucherType
    value: float
    min_order_amount: float
    max_discount: Optional[float] = None
    usage_limit: int
    used_count: int
    status: VoucherStatus
    start_date: datetime
    end_date: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class VoucherValidateRequest(BaseModel):
    code: Optional[str] = None
    order_amount: Decimal = Field(default=Decimal("0"), ge=0, alias="orderAmount")

    class Config:
        populate_by_name = True

class VoucherUseRequest(BaseModel):
    voucher_id: str = Field(..., alias="voucherId")
    order_id: Optional[str] = Field(None, alias="orderId")

    class Config:
        populate_by_name = True
