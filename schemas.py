from pydantic import BaseModel, Field, EmailStr
from typing import Optional, List

DEFAULT_PRODUCT_IMAGE = "/images/sample.jpg"

# Collection: product
class Product(BaseModel):
    name: str = Field(..., min_length=1, description="Product name")
    price: float = Field(..., ge=0, description="Price, currency agnostic")
    description: str = Field(..., min_length=1, description="Product description")
    image: str = Field(DEFAULT_PRODUCT_IMAGE, description="Primary image reference")
    images: List[str] = Field(default_factory=list, description="All image references, first mirrors image")
    category: str = Field(..., description="Category id")
    subcategory: Optional[str] = Field(None, description="SubCategory id")
    count_in_stock: int = Field(..., ge=0, description="Units in stock")
    discount: float = Field(0, ge=0, le=100, description="Discount percentage")
    is_active: bool = Field(True, description="Publicly visible")

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    count_in_stock: Optional[int] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None

# Embedded in product.reviews
class ReviewIn(BaseModel):
    rating: float = Field(..., ge=1, le=5)
    comment: str = ""

class BulkDelete(BaseModel):
    ids: List[str] = Field(..., min_length=1)

# Collection: category / subcategory
class SubCategoryIn(BaseModel):
    name: str = Field(..., min_length=1)
    category_id: str

# Collection: user
class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: str = "India"
    phone: Optional[str] = None
    is_default: bool = False

class UserRegister(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: str = Field(..., min_length=1)
    confirm_password: str

class UserLogin(BaseModel):
    email_or_phone: str
    password: str

class UserProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = None

class UserStatusUpdate(BaseModel):
    is_active: bool

# Collection: order
class OrderItem(BaseModel):
    name: str
    qty: int = Field(..., gt=0)
    image: Optional[str] = None
    price: float = Field(..., ge=0)
    product: str

class ShippingAddress(BaseModel):
    address: str
    city: str
    postal_code: str
    country: str = "India"

class OrderIn(BaseModel):
    order_items: List[OrderItem] = Field(default_factory=list)
    shipping_address: ShippingAddress
    payment_method: str
    items_price: float = Field(0, ge=0)
    tax_price: float = Field(0, ge=0)
    shipping_price: float = Field(0, ge=0)
    total_price: float = Field(0, ge=0)

class PaymentResult(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None

class PaymentIntentIn(BaseModel):
    amount: float = Field(..., gt=0)
