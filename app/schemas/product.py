from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

# 👇 Base structure for a product (common fields)
class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    stock_quantity: int = Field(0, ge=0)

# 👇 This is what the admin sends to create a product (image URLs filled in by the route)
class ProductCreate(ProductBase):
    image_urls: List[str] = []

# 👇 This is used for updating a product
class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    stock_quantity: Optional[int] = Field(None, ge=0)
    image_urls: Optional[List[str]] = None

# 👇 This is what the API returns when fetching products
class ProductOut(ProductBase):
    id: int
    image_urls: List[str] = []
    image_url: Optional[str] = None
    added_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Pagination(BaseModel):
    total: int
    limit: int
    offset: int

class ProductListOut(BaseModel):
    products: List[ProductOut]
    pagination: Pagination

class ProductDetailOut(BaseModel):
    product: ProductOut

class ProductMutationOut(BaseModel):
    message: str
    product: ProductOut

class CategoryListOut(BaseModel):
    categories: List[str]
