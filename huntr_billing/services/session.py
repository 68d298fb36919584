"""Login-scoped container for the billing services."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from huntr_billing.config import BillingSettings, get_settings
from huntr_billing.domain.models import PaymentRequest, QuotaDecision, UserProfile
from huntr_billing.i18n import I18nService
from huntr_billing.logging import logger
from huntr_billing.services.api_client import BackendClient
from huntr_billing.services.exceptions import AuthError, QuotaExceededError
from huntr_billing.services.notifications import NotificationCenter
from huntr_billing.services.payments import PaymentRequestManager
from huntr_billing.services.plan_catalog import PlanCatalog
from huntr_billing.services.quota import UsageQuotaGate
from huntr_billing.services.reconciler import PollingReconciler, ReconcileResult
from huntr_billing.utils.datetime import Clock, utc_now

T = TypeVar("T")
LogoutHook = Callable[[], Awaitable[None]]


class BillingSession:
    """Everything payment- and quota-related for one logged-in user.

    Build it at login with :meth:`open` (or ``async with``) and dispose of it
    at logout with :meth:`close`. An :class:`AuthError` from any operation
    tears the session down before being re-raised.
    """

    def __init__(
        self,
        backend: BackendClient,
        *,
        settings: BillingSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        on_logout: LogoutHook | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.settings = settings or get_settings()
        self._http_client = http_client
        self._on_logout = on_logout
        self._closed = False
        self._clock = clock
        self.profile: UserProfile | None = None

        i18n = I18nService(default_locale=self.settings.default_language)
        cache_seconds = self.settings.payments.plan_cache_seconds
        self.backend = backend
        self.notifications = NotificationCenter(
            i18n=i18n,
            max_items=self.settings.payments.notification_history_limit,
        )
        self.catalog = PlanCatalog(
            backend,
            max_age=timedelta(seconds=cache_seconds) if cache_seconds else None,
            clock=clock,
        )
        self.quota = UsageQuotaGate(self.catalog, i18n=i18n)
        self.payments = PaymentRequestManager(
            backend,
            self.catalog,
            notifier=self.notifications,
            clock=clock,
        )
        self.reconciler = PollingReconciler(
            self.payments,
            refresh_profile=self.refresh_profile,
            notifier=self.notifications,
            clock=clock,
        )

    @classmethod
    async def open(
        cls,
        token: str,
        *,
        settings: BillingSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        on_logout: LogoutHook | None = None,
        clock: Clock = utc_now,
    ) -> "BillingSession":
        """Create the HTTP client, load the profile and any active payment request."""

        settings = settings or get_settings()
        http_client = httpx.AsyncClient(transport=transport)
        backend = BackendClient(http_client, settings.api, token=token)
        session = cls(
            backend,
            settings=settings,
            http_client=http_client,
            on_logout=on_logout,
            clock=clock,
        )
        try:
            await session.start()
        except Exception:
            await http_client.aclose()
            raise
        return session

    async def start(self) -> None:
        await self._guard(self.refresh_profile)
        await self._guard(self.payments.load_active)
        logger.info(
            "billing_session_started",
            user_id=self.profile.id if self.profile else None,
            active_request=self.payments.cached.id if self.payments.cached else None,
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.payments.clear()
        self.catalog.invalidate()
        self.profile = None
        if self._http_client is not None:
            await self._http_client.aclose()
        logger.info("billing_session_closed")

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "BillingSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # Profile ----------------------------------------------------------

    async def refresh_profile(self) -> UserProfile:
        self.profile = await self.backend.fetch_profile()
        return self.profile

    # Payments ---------------------------------------------------------

    async def initiate_upgrade(self, plan: str | None = None) -> PaymentRequest:
        """Start (or reuse) a bank-transfer request for ``plan``.

        A cached request that is no longer active is reconciled first, so an
        approval that landed meanwhile is surfaced instead of billing twice.
        """

        target = plan or self.settings.payments.default_plan
        cached = self.payments.cached
        if cached is not None and not cached.is_active(self._clock()):
            result = await self.reconcile()
            if result.outcome == "approved" and result.request is not None:
                return result.request
        return await self._guard(lambda: self.payments.initiate(target))

    async def claim_paid(self, request_id: str) -> PaymentRequest:
        return await self._guard(lambda: self.payments.claim_paid(request_id))

    async def cancel(self, request_id: str) -> PaymentRequest:
        return await self._guard(lambda: self.payments.cancel(request_id))

    async def reconcile(self) -> ReconcileResult:
        return await self._guard(self.reconciler.reconcile)

    # Quota ------------------------------------------------------------

    async def check_quota(self) -> QuotaDecision:
        profile = self.profile or await self._guard(self.refresh_profile)
        return await self.quota.check(profile.subscription.plan, profile.api_usage)

    async def consume(self, action: Callable[[], Awaitable[T]]) -> T:
        """Run a billable action behind the quota gate.

        A local refusal raises :class:`QuotaExceededError` without calling
        ``action``; a server-side refusal is re-raised carrying the same
        upgrade prompt, resolved from the plan catalog. Counters are refreshed
        afterwards since the backend owns them.
        """

        decision = await self.check_quota()
        if not decision.allowed:
            raise QuotaExceededError(
                decision.message,
                limit_type="monthly" if decision.limit_type == "monthly" else "daily",
                can_upgrade=decision.can_upgrade,
            )
        plan = self.profile.subscription.plan if self.profile else "free"
        try:
            result = await self._guard(action)
        except QuotaExceededError as exc:
            rejection = await self.quota.from_rejection(exc, plan)
            logger.info("quota_rejected_by_server", limit_type=exc.limit_type, plan=plan)
            await self._guard(self.refresh_profile)
            raise QuotaExceededError(
                rejection.message,
                limit_type=exc.limit_type,
                can_upgrade=rejection.can_upgrade,
            ) from exc
        await self._guard(self.refresh_profile)
        return result

    # Internal helpers -------------------------------------------------

    async def _guard(self, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await operation()
        except AuthError:
            logger.warning("billing_session_auth_failed")
            await self.close()
            if self._on_logout is not None:
                await self._on_logout()
            raise


__all__ = ["BillingSession"]
