"""
Database Schemas for the Storefront Order Service

Each Pydantic model below corresponds to a MongoDB collection.
The collection name is the lowercase class name (e.g., Order -> "order").
"""
from typing import List, Optional, Literal
from pydantic import BaseModel, Field, EmailStr

ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled")

OrderStatus = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Unique email address")
    is_admin: bool = Field(False, description="Admin privileges")
    is_active: bool = True


class Product(BaseModel):
    name: str = Field(..., description="Product name")
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0, description="Units available for sale")
    images: List[str] = Field(default_factory=list, description="Image URLs, first one is the cover")


class OrderItem(BaseModel):
    product_id: str = Field(..., description="Reference to product _id")
    name: str = Field(..., description="Snapshot of the product name at order time")
    price: float = Field(..., description="Unit price at order time")
    quantity: int = Field(..., ge=1)
    image: str = ""


class ShippingAddress(BaseModel):
    first_name: str
    last_name: str
    address: str
    city: str
    state: str
    zip_code: str


class Order(BaseModel):
    user_id: str = Field(..., description="User who placed the order")
    items: List[OrderItem] = Field(..., min_length=1)
    shipping_address: ShippingAddress
    email: EmailStr
    phone: str
    payment_method: str
    subtotal: float
    tax: float
    total: float
    notes: str = ""
    status: OrderStatus = "pending"
"""
Notes:
- Totals are stored exactly as the client sent them.
- Product and user references are plain id strings; they are resolved on read.
"""
