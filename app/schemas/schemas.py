from pydantic import BaseModel, EmailStr, Field, StrictInt
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from app.models.models import UserRole

class UserRegister(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1)

class UserLogin(BaseModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: str

    @property
    def identifier(self) -> Optional[str]:
        # Accept either email or username
        return self.email or self.username

class UserOut(BaseModel):
    id: int
    username: str
    email: EmailStr
    role: UserRole

    class Config:
        from_attributes = True

class UserProfileOut(UserOut):
    created_at: Optional[datetime] = None

class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserOut

class ProfileResponse(BaseModel):
    user: UserProfileOut


# 👇 Cart
class CartItemCreate(BaseModel):
    product_id: int = Field(..., alias="productId")
    quantity: Optional[StrictInt] = None  # omitted -> 1, explicit values must be >= 1

    class Config:
        populate_by_name = True

class CartItemUpdate(BaseModel):
    quantity: StrictInt

class CartLine(BaseModel):
    cart_id: int
    quantity: int
    id: int
    name: str
    price: Decimal
    image_url: Optional[str] = None
    stock_quantity: int

class CartOut(BaseModel):
    cart: List[CartLine]
    total: str
    itemCount: int

class MessageResponse(BaseModel):
    message: str
