"""Shared fakes and fixtures for the billing service tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from huntr_billing.domain.models import (
    BankDetails,
    PaymentRequest,
    Subscription,
    UsageCounters,
    UsagePlan,
    UserProfile,
)
from huntr_billing.services.exceptions import ConflictError, NotFoundError
from huntr_billing.services.notifications import NotificationCenter
from huntr_billing.services.payments import PaymentRequestManager
from huntr_billing.services.plan_catalog import PlanCatalog


class FrozenClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def default_plans() -> list[UsagePlan]:
    return [
        UsagePlan(
            id="premium",
            name="Premium Plan",
            daily_limit=5,
            monthly_limit=150,
            price=500000,
            currency="NGN",
            duration_days=30,
        ),
        UsagePlan(id="free", name="Free Plan", daily_limit=1, monthly_limit=30, price=0),
    ]


class FakeBackend:
    """In-memory stand-in for BackendClient mirroring the server's rules."""

    def __init__(self, clock: FrozenClock, plans: list[UsagePlan] | None = None) -> None:
        self.clock = clock
        self.plans = plans if plans is not None else default_plans()
        self.requests: dict[str, PaymentRequest] = {}
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}
        self.profile = UserProfile(
            id="user-1",
            username="trader",
            subscription=Subscription(plan="free"),
            api_usage=UsageCounters(daily_analyses=0, monthly_analyses=0),
        )
        self._seq = 0

    def fail_next(self, call: str, exc: Exception) -> None:
        self.failures[call] = exc

    def _record(self, call: str) -> None:
        self.calls.append(call)
        if call in self.failures:
            raise self.failures.pop(call)

    def _active(self) -> PaymentRequest | None:
        for request in self.requests.values():
            if request.is_active(self.clock()):
                return request
        return None

    def _get(self, request_id: str) -> PaymentRequest:
        try:
            return self.requests[request_id]
        except KeyError:
            raise NotFoundError(f"Payment {request_id} not found") from None

    def _update(self, request_id: str, **changes) -> PaymentRequest:
        updated = self._get(request_id).model_copy(update=changes)
        self.requests[request_id] = updated
        return updated

    # Collaborator contract ---------------------------------------------

    async def create_payment_request(self, plan: str) -> PaymentRequest:
        self._record("create")
        if self._active() is not None:
            raise ConflictError("You already have a pending payment request")
        self._seq += 1
        now = self.clock()
        request = PaymentRequest(
            id=f"pay-{self._seq}",
            user_id=self.profile.id,
            amount=500000,
            currency="NGN",
            plan=plan,
            reference=f"HUNTR_{self._seq:04d}",
            bank_details=BankDetails(
                account_number="0123456789",
                account_name="HUNTR AI TECHNOLOGIES",
                bank_name="ACCESS BANK",
            ),
            created_at=now,
            expires_at=now + timedelta(minutes=30),
        )
        self.requests[request.id] = request
        return request

    async def claim_paid(self, request_id: str) -> PaymentRequest:
        self._record("claim")
        return self._update(
            request_id,
            submission_state="userClaimedPaid",
            review_state="awaitingReview",
        )

    async def fetch_status(self, request_id: str) -> PaymentRequest:
        self._record("status")
        await asyncio.sleep(0)
        return self._get(request_id).with_expiry_applied(self.clock())

    async def cancel(self, request_id: str) -> PaymentRequest:
        self._record("cancel")
        return self._update(request_id, submission_state="cancelled")

    async def fetch_active_request(self) -> PaymentRequest | None:
        self._record("active")
        return self._active()

    async def fetch_plans(self) -> list[UsagePlan]:
        self._record("plans")
        return list(self.plans)

    async def fetch_profile(self) -> UserProfile:
        self._record("profile")
        return self.profile

    # Admin side ---------------------------------------------------------

    def approve(self, request_id: str) -> PaymentRequest:
        self.profile = self.profile.model_copy(update={"subscription": Subscription(plan="premium")})
        return self._update(request_id, review_state="approved")

    def reject(self, request_id: str, note: str) -> PaymentRequest:
        return self._update(request_id, review_state="rejected", admin_note=note)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def backend(clock) -> FakeBackend:
    return FakeBackend(clock)


@pytest.fixture
def catalog(backend) -> PlanCatalog:
    return PlanCatalog(backend)


@pytest.fixture
def notifier() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def manager(backend, catalog, notifier, clock) -> PaymentRequestManager:
    return PaymentRequestManager(backend, catalog, notifier=notifier, clock=clock)
