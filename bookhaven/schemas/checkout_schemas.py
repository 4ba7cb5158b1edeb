# bookhaven/schemas/checkout_schemas.py
from pydantic import BaseModel
from typing import List, Optional

REQUIRED_SHIPPING_FIELDS = ("full_name", "address", "city", "state", "zip_code")


class ShippingDetails(BaseModel):
    full_name: str = ""
    address: str = ""       # street address
    city: str = ""
    state: str = ""         # state / province
    zip_code: str = ""
    country: str = "India"

    def missing_fields(self) -> List[str]:
        return [
            name for name in REQUIRED_SHIPPING_FIELDS
            if not getattr(self, name).strip()
        ]

    def flattened(self) -> str:
        return (
            f"{self.full_name}, {self.address}, {self.city}, "
            f"{self.state} {self.zip_code}, {self.country}"
        )


class PaymentVerifyRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentDismissRequest(BaseModel):
    razorpay_order_id: str
    reason: Optional[str] = None


class CheckoutStateOut(BaseModel):
    step: str
    shipping: Optional[ShippingDetails] = None
    order_id: Optional[int] = None
    payment_in_flight: bool = False
    error: Optional[str] = None
