"""
Pydantic Schemas for Request/Response Validation

Every response shares the envelope {"success": bool, "message": str, ...}
with the payload under a resource-named key (user, cart, order, ...) or,
for the back-office listings, under "data".
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from foodie.models import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductStatus,
    UserRole,
)


# =============================================================================
# READ MODELS
# =============================================================================

class CategoryResponse(BaseModel):
    id: int
    name: str
    image: Optional[str] = None

    class Config:
        from_attributes = True


class RestaurantProfileResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    logo: Optional[str] = None

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """Public view of an account. Never carries the password hash."""
    id: int
    username: Optional[str] = None
    name: Optional[str] = None
    email: str
    role: UserRole
    currently_active: bool
    deleted: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RestaurantResponse(UserResponse):
    restaurant_profile: Optional[RestaurantProfileResponse] = None


class ProductSummary(BaseModel):
    """Product as embedded in cart lines and order items."""
    id: int
    name: str
    price: float
    images: List[str] = []
    status: ProductStatus
    featured: bool
    category_id: int

    class Config:
        from_attributes = True


class ProductResponse(ProductSummary):
    description: str
    ingredients: List[str] = []
    category: Optional[CategoryResponse] = None
    restaurants: List[RestaurantResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CartItemResponse(BaseModel):
    id: int
    cart_id: int
    product_id: int
    quantity: int
    product: ProductSummary

    class Config:
        from_attributes = True


class CartResponse(BaseModel):
    id: int
    user_id: int
    cart_total: float
    cart_items: List[CartItemResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AddressResponse(BaseModel):
    id: int
    user_id: int
    address: str
    landmark: Optional[str] = None
    area: Optional[str] = None
    house_number: Optional[str] = None
    city: str
    state: str
    country: str
    postal_code: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    deleted: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    id: int
    amount: float
    method: PaymentMethod
    status: PaymentStatus
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    price: float
    product: ProductSummary

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_id: str
    receiver_name: str
    user_id: int
    address_id: int
    payment_id: int
    status: OrderStatus
    address: Optional[AddressResponse] = None
    payment: Optional[PaymentResponse] = None
    items: List[OrderItemResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserDetailResponse(UserResponse):
    """Account with everything the storefront shows on the profile page."""
    addresses: List[AddressResponse] = []
    orders: List[OrderResponse] = []
    carts: List[CartResponse] = []


class AuditLogResponse(BaseModel):
    id: int
    actor_id: Optional[int] = None
    action: str
    entity: str
    entity_id: Optional[int] = None
    details: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100, examples=["jane"])
    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=1, max_length=128)
    role: UserRole = UserRole.USER


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RestaurantRegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=150, examples=["Spice Route"])
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None
    logo: Optional[str] = Field(None, max_length=500)


class AdminCreateRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    name: Optional[str] = Field(None, max_length=100)


class UserUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None

    @field_validator("email", "role")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v


class ProductCreateRequest(BaseModel):
    """
    Required fields are optional here so the route can answer a missing
    one with a 400 instead of a 422.
    """
    name: Optional[str] = Field(None, max_length=150)
    price: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    ingredients: List[str] = []
    images: List[str] = []
    status: ProductStatus = ProductStatus.ACTIVE
    category_id: Optional[int] = None
    featured: bool = False
    restaurant_ids: List[int] = []


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=150)
    price: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    ingredients: Optional[List[str]] = None
    images: Optional[List[str]] = None
    status: Optional[ProductStatus] = None
    category_id: Optional[int] = None
    featured: Optional[bool] = None
    restaurant_ids: List[int] = []


class CategoryCreateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    image: Optional[str] = Field(None, max_length=500)


class CartAddRequest(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1, le=99)


class CartQuantityRequest(BaseModel):
    quantity: int


class AddressCreateRequest(BaseModel):
    address: str = Field(..., min_length=1, max_length=255)
    landmark: Optional[str] = Field(None, max_length=255)
    area: Optional[str] = Field(None, max_length=255)
    house_number: Optional[str] = Field(None, max_length=50)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class AddressUpdateRequest(BaseModel):
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    landmark: Optional[str] = Field(None, max_length=255)
    area: Optional[str] = Field(None, max_length=255)
    house_number: Optional[str] = Field(None, max_length=50)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    postal_code: Optional[str] = Field(None, min_length=1, max_length=20)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    # landmark, area, house_number and the coordinates may be cleared with null
    @field_validator("address", "city", "state", "country", "postal_code")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v


class GatewayOrderRequest(BaseModel):
    amount: float = Field(..., gt=0, examples=[499.0])


class PaymentVerification(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class VerifyPaymentRequest(BaseModel):
    data: PaymentVerification


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1, le=99)


class OrderCreateRequest(BaseModel):
    items: List[OrderItemRequest] = Field(..., min_length=1)
    payment_method: PaymentMethod
    address_id: int
    receiver_name: Optional[str] = Field(None, max_length=255)
    amount: Optional[float] = Field(None, ge=0)
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    order_id: Optional[str] = Field(None, max_length=64)


class OrderStatusRequest(BaseModel):
    status: Optional[OrderStatus] = None


# =============================================================================
# RESPONSE ENVELOPES
# =============================================================================

class MessageResponse(BaseModel):
    success: bool = True
    message: str


class AuthResponse(MessageResponse):
    token: str
    user: UserResponse


class RestaurantAuthResponse(MessageResponse):
    token: str
    user: RestaurantResponse


class UserEnvelope(MessageResponse):
    user: UserDetailResponse


class RestaurantEnvelope(MessageResponse):
    restaurant: RestaurantResponse


class ProductEnvelope(MessageResponse):
    product: ProductResponse


class ProductListEnvelope(MessageResponse):
    products: List[ProductResponse]


class CategoryEnvelope(MessageResponse):
    category: CategoryResponse


class CategoryListEnvelope(MessageResponse):
    categories: List[CategoryResponse]


class CartEnvelope(MessageResponse):
    cart: CartResponse


class AddressEnvelope(MessageResponse):
    address: AddressResponse


class AddressListEnvelope(MessageResponse):
    addresses: List[AddressResponse]


class GatewayOrderEnvelope(MessageResponse):
    order: dict[str, Any]


class OrderEnvelope(MessageResponse):
    order: OrderResponse


class OrderListEnvelope(MessageResponse):
    orders: List[OrderResponse]


class AddressDetailsEnvelope(MessageResponse):
    address: dict[str, Any]
    display_name: Optional[str] = None


class TopStates(BaseModel):
    ordersInLast24Hours: int
    totalRevenueInLast24Hours: float
    cancelledFailedOrdersInLast24Hours: int
    activeProducts: int
    activeUsers: int
    currentActiveRestaurants: int


class TopStatesEnvelope(MessageResponse):
    data: TopStates


class DataEnvelope(MessageResponse):
    """Back-office listings put their payload under "data"."""
    data: Any


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    message: str
    errors: Optional[List[Any]] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    payment_service: str
    geo_service: str
    timestamp: datetime
