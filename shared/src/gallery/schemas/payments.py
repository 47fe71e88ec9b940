"""Tagged payment-provider event variants.

Webhook envelopes are validated once at the boundary and turned into one
of the variants below; handlers branch on the variant class instead of
probing nested dictionaries.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"
IGNORED_EVENT_TYPES = frozenset(
    {
        "charge.succeeded",
        "charge.updated",
        "payment_intent.succeeded",
        "payment_intent.created",
    }
)


class _ProviderObject(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Address(_ProviderObject):
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None

    def lines(self) -> list[str]:
        locality = " ".join(part for part in (self.city, self.state, self.postal_code) if part)
        return [part for part in (self.line1, self.line2, locality, self.country) if part]


class CustomerDetails(_ProviderObject):
    email: str | None = None
    name: str | None = None


class ShippingDetails(_ProviderObject):
    name: str | None = None
    address: Address | None = None


class CheckoutSession(_ProviderObject):
    id: str
    amount_total: int | None = None
    currency: str | None = None
    customer_email: str | None = None
    customer_details: CustomerDetails | None = None
    shipping_details: ShippingDetails | None = None
    metadata: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _lift_collected_shipping(cls, data: Any) -> Any:
        # Newer API versions nest shipping under collected_information
        if isinstance(data, dict) and not data.get("shipping_details"):
            collected = data.get("collected_information")
            if isinstance(collected, dict) and collected.get("shipping_details"):
                data = {**data, "shipping_details": collected["shipping_details"]}
        return data

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        return {str(key): str(item) for key, item in value.items() if item is not None}

    @property
    def artwork_slug(self) -> str | None:
        return self.metadata.get("artwork_slug", "").strip() or None

    @property
    def artwork_title(self) -> str | None:
        return self.metadata.get("artwork_title", "").strip() or None

    @property
    def buyer_email(self) -> str | None:
        if self.customer_details and self.customer_details.email:
            return self.customer_details.email
        return self.customer_email or None

    @property
    def buyer_name(self) -> str | None:
        if self.customer_details and self.customer_details.name:
            return self.customer_details.name
        if self.shipping_details and self.shipping_details.name:
            return self.shipping_details.name
        return None


class PaymentIntent(_ProviderObject):
    id: str
    amount: int | None = None
    currency: str | None = None
    last_payment_error: dict[str, Any] | None = None

    @property
    def failure_message(self) -> str | None:
        if not self.last_payment_error:
            return None
        message = self.last_payment_error.get("message")
        return str(message) if message else None


class _EventBase(_ProviderObject):
    id: str
    type: str


class CheckoutSessionCompleted(_EventBase):
    kind: Literal["checkout_session_completed"] = "checkout_session_completed"
    session: CheckoutSession


class PaymentIntentFailed(_EventBase):
    kind: Literal["payment_intent_failed"] = "payment_intent_failed"
    payment_intent: PaymentIntent


class IgnoredEvent(_EventBase):
    kind: Literal["ignored"] = "ignored"


class UnhandledEvent(_EventBase):
    kind: Literal["unhandled"] = "unhandled"


PaymentEvent = Union[CheckoutSessionCompleted, PaymentIntentFailed, IgnoredEvent, UnhandledEvent]


def parse_payment_event(envelope: Any) -> PaymentEvent:
    """Turn a decoded webhook envelope into its tagged variant.

    Raises ``ValueError`` (pydantic's ``ValidationError`` included) when the
    envelope is missing its id, type, or data object.
    """
    if not isinstance(envelope, dict):
        raise ValueError("Webhook envelope must be a JSON object")
    event_id = str(envelope.get("id") or "").strip()
    event_type = str(envelope.get("type") or "").strip()
    if not event_id or not event_type:
        raise ValueError("Webhook envelope is missing id or type")
    data = envelope.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("object"), dict):
        raise ValueError("Webhook envelope is missing data.object")
    obj = data["object"]

    if event_type == CHECKOUT_SESSION_COMPLETED:
        return CheckoutSessionCompleted(
            id=event_id, type=event_type, session=CheckoutSession.model_validate(obj)
        )
    if event_type == PAYMENT_INTENT_FAILED:
        return PaymentIntentFailed(
            id=event_id, type=event_type, payment_intent=PaymentIntent.model_validate(obj)
        )
    if event_type in IGNORED_EVENT_TYPES:
        return IgnoredEvent(id=event_id, type=event_type)
    return UnhandledEvent(id=event_id, type=event_type)
