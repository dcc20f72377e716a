# module backend.orders.models
"""Schémas d'entrée des commandes et du paiement (Pydantic).
Les services manipulent des dicts: les vues appellent model_dump() avant délégation.
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class PaymentMethod(str, Enum):
    stripe = "stripe"
    cash_on_delivery = "cash_on_delivery"
    bank_transfer = "bank_transfer"


class PaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


class ShippingAddress(BaseModel):
    # JSON compact (ensure_ascii=False) <= 500 caractères, limite d'une valeur de metadata Stripe
    full_name: str = Field(default="", max_length=80)
    street: str = Field(min_length=1, max_length=100)
    city: str = Field(min_length=1, max_length=60)
    state: str = Field(default="", max_length=60)
    postal_code: str = Field(default="", max_length=20)
    country: str = Field(min_length=1, max_length=56)
    phone: str = Field(default="", max_length=30)


class CreateOrderRequest(BaseModel):
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = PaymentMethod.cash_on_delivery
    notes: str = Field(default="", max_length=1000)


class UpdateOrderStatusRequest(BaseModel):
    order_status: Optional[OrderStatus] = None
    tracking_number: Optional[str] = Field(default=None, max_length=100)
    payment_status: Optional[PaymentStatus] = None


class PaymentIntentRequest(BaseModel):
    shipping_address: ShippingAddress
    notes: str = Field(default="", max_length=300)
