"""Pydantic models shared across the payment and quota services."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from huntr_billing.utils.datetime import ensure_utc, utc_now

SubmissionState = Literal["pending", "userClaimedPaid", "cancelled", "expired"]
ReviewState = Literal["awaitingReview", "approved", "rejected", "none"]
LimitType = Literal["none", "daily", "monthly"]
NotificationKind = Literal["info", "success", "warning", "error"]

ACTIVE_SUBMISSION_STATES = {"pending", "userClaimedPaid"}
TERMINAL_REVIEW_STATES = {"approved", "rejected"}


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BankDetails(WireModel):
    model_config = ConfigDict(extra="allow")

    account_number: str | None = None
    account_name: str | None = None
    bank_name: str | None = None
    sort_code: str | None = None
    bank_code: str | None = None


class PaymentRequest(WireModel):
    id: str
    user_id: str
    amount: int = Field(ge=0)
    currency: str = "NGN"
    plan: str
    submission_state: SubmissionState = "pending"
    review_state: ReviewState = "none"
    bank_details: BankDetails = Field(default_factory=BankDetails)
    reference: str
    created_at: datetime
    expires_at: datetime
    admin_note: str | None = None

    @field_validator("created_at", "expires_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _expiry_after_creation(self) -> "PaymentRequest":
        if self.expires_at <= self.created_at:
            raise ValueError("expiresAt must be later than createdAt")
        return self

    def effective_submission_state(self, now: datetime | None = None) -> SubmissionState:
        """Submission state with lazy expiry applied to pending requests."""

        if self.submission_state == "pending" and ensure_utc(now or utc_now()) >= self.expires_at:
            return "expired"
        return self.submission_state

    def is_active(self, now: datetime | None = None) -> bool:
        if self.review_state in TERMINAL_REVIEW_STATES:
            return False
        return self.effective_submission_state(now) in ACTIVE_SUBMISSION_STATES

    def is_terminal(self, now: datetime | None = None) -> bool:
        return not self.is_active(now)

    def with_expiry_applied(self, now: datetime | None = None) -> "PaymentRequest":
        state = self.effective_submission_state(now)
        if state == self.submission_state:
            return self
        return self.model_copy(update={"submission_state": state})


class UsagePlan(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    daily_limit: int = Field(ge=0)
    monthly_limit: int = Field(ge=0)
    price: int = Field(default=0, ge=0)
    currency: str = "NGN"
    duration_days: int | None = None


class UsageCounters(WireModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    daily_analyses: int = Field(default=0, ge=0)
    monthly_analyses: int = Field(default=0, ge=0)


class QuotaDecision(BaseModel):
    allowed: bool
    limit_type: LimitType = "none"
    can_upgrade: bool = False
    message: str = ""
    daily_remaining: int = 0
    monthly_remaining: int = 0


class Subscription(WireModel):
    model_config = ConfigDict(extra="ignore")

    plan: str = "free"
    end_date: datetime | None = None


class UserProfile(WireModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    username: str | None = None
    subscription: Subscription = Field(default_factory=Subscription)
    api_usage: UsageCounters = Field(default_factory=UsageCounters)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value


class Notification(BaseModel):
    title: str
    message: str
    kind: NotificationKind = "info"
    reference: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


__all__ = [
    "ACTIVE_SUBMISSION_STATES",
    "BankDetails",
    "LimitType",
    "Notification",
    "NotificationKind",
    "PaymentRequest",
    "QuotaDecision",
    "ReviewState",
    "SubmissionState",
    "Subscription",
    "UsageCounters",
    "UsagePlan",
    "UserProfile",
]
