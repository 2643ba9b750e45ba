from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field


class ShippingAddress(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    pincode: Optional[str] = None


class CreateOrderRequest(BaseModel):
    shipping_address: Optional[ShippingAddress] = Field(
        default=None,
        validation_alias=AliasChoices("shipping_address", "shippingAddress"),
    )
    payment_method: Literal["razorpay", "cod"] = Field(
        validation_alias=AliasChoices("payment_method", "paymentMethod")
    )


class VerifyPaymentRequest(BaseModel):
    payment_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("payment_id", "razorpay_payment_id", "razorpayPaymentId"),
    )
    signature: str = Field(
        min_length=1,
        validation_alias=AliasChoices("signature", "razorpay_signature", "razorpaySignature"),
    )


class UpdateStatusRequest(BaseModel):
    status: Literal["paid", "shipped", "delivered", "cancelled"]
