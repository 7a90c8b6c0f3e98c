"""Pydantic schemas for the storefront payments API.

Request bodies use the storefront's camelCase keys; snake_case is accepted
too.
"""

import uuid
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from services.store_service.models import DeliveryType

# ============================================================================
# CHECKOUT SCHEMAS
# ============================================================================


class CartItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: uuid.UUID = Field(
        ..., validation_alias=AliasChoices("id", "productId", "product_id")
    )
    quantity: int = Field(..., gt=0)
    selected_size: Optional[str] = Field(
        None,
        max_length=50,
        validation_alias=AliasChoices("selectedSize", "selected_size", "size"),
    )
    selected_color: Optional[str] = Field(
        None,
        max_length=50,
        validation_alias=AliasChoices("selectedColor", "selected_color", "color"),
    )


class CustomerInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(..., min_length=1, max_length=120, alias="firstName")
    last_name: str = Field("", max_length=120, alias="lastName")
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class CreateOrderRequest(BaseModel):
    """Body shared by the inline (create-order) and hosted-page (initialize) flows."""

    model_config = ConfigDict(populate_by_name=True)

    cart_items: list[CartItemIn] = Field(..., min_length=1, alias="cartItems")
    customer_info: CustomerInfo = Field(..., alias="customerInfo")
    delivery_type: str = Field(DeliveryType.DELIVERY.value, alias="deliveryType")
    delivery_zone_id: Optional[uuid.UUID] = Field(None, alias="deliveryZoneId")
    delivery_address: Optional[str] = Field(
        None, max_length=1000, alias="deliveryAddress"
    )


class CreateOrderResponse(BaseModel):
    """Everything the browser needs to open the inline payment popup."""

    reference: str
    amount: int  # minor units
    email: str
    currency: str
    orderId: uuid.UUID


class InitializeResponse(BaseModel):
    link: str


# ============================================================================
# RECONCILIATION SCHEMAS
# ============================================================================


class VerifyPaymentRequest(BaseModel):
    reference: str = Field(..., min_length=1, max_length=64)


class VerifyPaymentResponse(BaseModel):
    status: str = "success"
    orderId: Optional[uuid.UUID] = None
    message: Optional[str] = None


class WebhookAck(BaseModel):
    """The acknowledgement Pesapal expects from an IPN endpoint."""

    orderNotificationType: Optional[str] = None
    orderTrackingId: Optional[str] = None
    status: int = 200
    message: Optional[str] = None
