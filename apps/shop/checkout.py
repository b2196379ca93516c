"""Checkout wizard: ADDRESS -> PAYMENT -> REVIEW -> SUBMITTED.

Guards run before any state changes, so a failed action leaves the wizard as it
was and the caller can simply retry.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from django.conf import settings

from apps.cart.cart import Cart
from apps.core.exceptions import EmptyOrderError, ShopError


class Step(str, Enum):
    ADDRESS = "ADDRESS"
    PAYMENT = "PAYMENT"
    REVIEW = "REVIEW"
    SUBMITTED = "SUBMITTED"


_FORWARD = {Step.ADDRESS: Step.PAYMENT, Step.PAYMENT: Step.REVIEW}
_BACKWARD = {Step.PAYMENT: Step.ADDRESS, Step.REVIEW: Step.PAYMENT}


class CheckoutStepError(ShopError):
    field = "step"


@dataclass
class CheckoutWizard:
    step: Step = Step.ADDRESS
    address_id: Optional[int] = None
    payment_method: Optional[str] = None
    order_id: Optional[str] = None

    @classmethod
    def start(cls) -> "CheckoutWizard":
        return cls(payment_method=settings.SHOP["DEFAULT_PAYMENT_METHOD"])

    def _require(self, *steps: Step) -> None:
        if self.step not in steps:
            raise CheckoutStepError(f"Not allowed during {self.step.value}")

    def select_address(self, address_id: int) -> None:
        self._require(Step.ADDRESS)
        self.address_id = address_id

    def select_payment_method(self, method: str) -> None:
        self._require(Step.PAYMENT)
        if method and method not in settings.SHOP["PAYMENT_METHODS"]:
            raise CheckoutStepError(f"Unknown payment method: {method}", field="paymentMethod")
        self.payment_method = method or None

    def advance(self) -> None:
        self._require(Step.ADDRESS, Step.PAYMENT)
        if self.step is Step.ADDRESS and not self.address_id:
            raise CheckoutStepError("Please select a shipping address", field="addressId")
        if self.step is Step.PAYMENT and not self.payment_method:
            raise CheckoutStepError("Please select a payment method", field="paymentMethod")
        self.step = _FORWARD[self.step]

    def back(self) -> None:
        self._require(Step.PAYMENT, Step.REVIEW)
        self.step = _BACKWARD[self.step]

    def place_order(self, cart: Cart, submit: Callable[["CheckoutWizard"], object]):
        """Call ``submit`` once; on success empty the cart and finish."""
        self._require(Step.REVIEW)
        if cart.is_empty:
            raise EmptyOrderError("Your cart is empty")
        order = submit(self)
        cart.clear()
        self.order_id = str(order.pk)
        self.step = Step.SUBMITTED
        return order

    def as_dict(self) -> dict:
        return {
            "step": self.step.value,
            "addressId": self.address_id,
            "paymentMethod": self.payment_method,
            "orderId": self.order_id,
        }

    @classmethod
    def from_dict(cls, data) -> "CheckoutWizard":
        if not isinstance(data, dict):
            return cls.start()
        try:
            step = Step(data.get("step"))
        except ValueError:
            return cls.start()
        return cls(
            step=step,
            address_id=data.get("addressId"),
            payment_method=data.get("paymentMethod"),
            order_id=data.get("orderId"),
        )
