from pydantic import BaseModel, EmailStr, validator, Field
from typing import Optional
from datetime import datetime
from models.user import UserRole
import re

# User Registration Schema
class UserRegister(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)

    @validator('username')
    def validate_username(cls, v):
        v = v.strip()
        if not re.match(r'^[a-zA-Z0-9_.\-]+$', v):
            raise ValueError('Username may only contain letters, digits, dots, dashes and underscores')
        return v

    @validator('password')
    def validate_password(cls, v):
        if not any(c.isalpha() for c in v) or not any(c.isdigit() for c in v):
            raise ValueError('Password must contain at least one letter and one digit')
        return v

    @validator('phone')
    def validate_phone(cls, v):
        if v is None:
            return v
        clean_phone = re.sub(r'[^\d+]', '', v)
        if len(clean_phone.lstrip('+')) < 9:
            raise ValueError('Phone number must have at least 9 digits')
        return clean_phone

# User Login Schema
class UserLogin(BaseModel):
    email: EmailStr
    password: str

# User Response Schema
class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

# Token Schema
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

# Token Data Schema
class TokenData(BaseModel):
    email: Optional[str] = None
    user_id: Optional[str] = None
