"""
Pydantic Models

Request bodies accepted by the API route modules.
"""

from typing import Literal

from pydantic import BaseModel, Field

OrderStatus = Literal[
    "placed",
    "confirmed",
    "preparing",
    "out_for_delivery",
    "delivered",
    "cancelled",
]


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., min_length=3, description="Login email")
    password: str = Field(..., min_length=6, description="Plain password, hashed before storage")


class LoginRequest(BaseModel):
    email: str
    password: str


class CartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1, le=50)


class CreateOrderRequest(BaseModel):
    """Checkout details; the items come from the caller's cart."""
    address: str = Field(..., min_length=1, description="Delivery address")
    phone: str = Field("", description="Contact phone for the driver")


class OrderStatusRequest(BaseModel):
    status: OrderStatus


class ReviewRequest(BaseModel):
    product_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""


class ContactRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    message: str = Field(..., min_length=1)


class RazorpayVerifyRequest(BaseModel):
    """Fields returned by Razorpay Checkout after a successful payment."""
    order_id: str = Field(..., description="Our order id")
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class LocationRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
