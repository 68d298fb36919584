"""Payment request lifecycle for bank-transfer upgrades."""

from __future__ import annotations

import asyncio
from datetime import datetime

from huntr_billing.domain.models import PaymentRequest
from huntr_billing.logging import logger
from huntr_billing.services.api_client import BackendClient
from huntr_billing.services.exceptions import ConflictError, NotFoundError, StateError
from huntr_billing.services.expiry import Remaining, remaining
from huntr_billing.services.notifications import NotificationCenter
from huntr_billing.services.plan_catalog import PlanCatalog
from huntr_billing.utils.currency import format_currency
from huntr_billing.utils.datetime import Clock, utc_now


class PaymentRequestManager:
    """Owns the single active payment request of the session's user.

    Submission transitions (claim, cancel) are validated locally against the
    cached request and then confirmed by the backend; review outcomes are only
    ever observed, never set, here. Expiry is evaluated lazily on read.
    """

    def __init__(
        self,
        backend: BackendClient,
        catalog: PlanCatalog,
        *,
        notifier: NotificationCenter | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._backend = backend
        self._catalog = catalog
        self._notifier = notifier
        self._clock = clock
        self._active: PaymentRequest | None = None
        self._initiate_lock = asyncio.Lock()

    @property
    def cached(self) -> PaymentRequest | None:
        """Cached request exactly as last stored, without lazy expiry."""

        return self._active

    def current(self, now: datetime | None = None) -> PaymentRequest | None:
        if self._active is None:
            return None
        return self._active.with_expiry_applied(now or self._clock())

    def remaining_time(self, now: datetime | None = None) -> Remaining | None:
        if self._active is None:
            return None
        return remaining(self._active.expires_at, now or self._clock())

    async def load_active(self) -> PaymentRequest | None:
        """Hydrate the cache from the server's active request, if any."""

        request = await self._backend.fetch_active_request()
        if request is not None and request.is_active(self._clock()):
            self.cache(request)
        return self.current()

    async def initiate(self, plan: str) -> PaymentRequest:
        await self._catalog.get(plan)
        async with self._initiate_lock:
            existing = self._active
            if existing is not None and existing.is_active(self._clock()):
                logger.info(
                    "payment_initiate_reused",
                    request_id=existing.id,
                    reference=existing.reference,
                )
                return existing
            if existing is not None and existing.review_state != "rejected":
                settled = await self._settle_with_server(existing)
                if settled is not None:
                    return settled

            try:
                request = await self._backend.create_payment_request(plan)
            except ConflictError:
                request = await self._backend.fetch_active_request()
                if request is None:
                    raise
                logger.warning(
                    "payment_initiate_conflict_resolved",
                    request_id=request.id,
                    reference=request.reference,
                )
                self.cache(request)
                return request

            self.cache(request)
            logger.info(
                "payment_initiated",
                request_id=request.id,
                reference=request.reference,
                plan=plan,
                amount=request.amount,
                expires_at=request.expires_at.isoformat(),
            )
            await self._notify(
                "payment.initiated",
                kind="info",
                reference=request.reference,
                amount=format_currency(request.amount, request.currency),
            )
            return request

    async def claim_paid(self, request_id: str) -> PaymentRequest:
        request = await self._resolve(request_id)
        self._require_pending(request, action="claim payment for")

        updated = await self._backend.claim_paid(request_id)
        self._replace_if_cached(updated)
        logger.info(
            "payment_claimed_paid",
            request_id=updated.id,
            reference=updated.reference,
            review_state=updated.review_state,
        )
        await self._notify("payment.claimed", kind="success", reference=updated.reference)
        return updated

    async def cancel(self, request_id: str) -> PaymentRequest:
        request = await self._resolve(request_id)
        self._require_pending(request, action="cancel")

        updated = await self._backend.cancel(request_id)
        if self._active is not None and self._active.id == request_id:
            self.clear()
        logger.info("payment_cancelled", request_id=request_id, reference=updated.reference)
        await self._notify("payment.cancelled", kind="info", reference=updated.reference)
        return updated

    async def fetch_status(self, request_id: str) -> PaymentRequest:
        """Authoritative server state for ``request_id``; the cache is left untouched."""

        return await self._backend.fetch_status(request_id)

    def acknowledge(self, request_id: str) -> None:
        """Drop a surfaced terminal request (rejected or expired) after the user dismisses it."""

        request = self.current()
        if request is None or request.id != request_id:
            raise NotFoundError(f"No cached payment request {request_id!r}.")
        if request.is_active(self._clock()):
            raise StateError(f"Payment request {request_id!r} is still active.")
        self.clear()

    def cache(self, request: PaymentRequest) -> None:
        self._active = request

    def clear(self) -> None:
        self._active = None

    # Internal helpers -------------------------------------------------

    async def _settle_with_server(self, existing: PaymentRequest) -> PaymentRequest | None:
        """Ask the server about a locally stale request before replacing it.

        Returns the server copy when it is still active. A reviewed request is
        kept in the cache for the reconciler to surface and a
        :class:`StateError` is raised; ``None`` means a new request may be
        created.
        """

        try:
            server = await self._backend.fetch_status(existing.id)
        except NotFoundError:
            return None
        now = self._clock()
        server = server.with_expiry_applied(now)
        if server.is_active(now):
            self.cache(server)
            logger.info("payment_initiate_reused", request_id=server.id, reference=server.reference)
            return server
        if server.review_state in ("approved", "rejected"):
            self.cache(server)
            logger.warning(
                "payment_initiate_blocked_by_review",
                request_id=server.id,
                review_state=server.review_state,
            )
            raise StateError(
                f"Payment request {server.id!r} was {server.review_state}; "
                "reconcile it before starting a new one."
            )
        return None

    async def _resolve(self, request_id: str) -> PaymentRequest:
        cached = self.current()
        if cached is not None and cached.id == request_id:
            return cached
        return (await self._backend.fetch_status(request_id)).with_expiry_applied(self._clock())

    def _require_pending(self, request: PaymentRequest, *, action: str) -> None:
        if request.submission_state != "pending" or request.review_state != "none":
            raise StateError(
                f"Cannot {action} payment request {request.id!r} in state "
                f"{request.submission_state}/{request.review_state}."
            )

    def _replace_if_cached(self, request: PaymentRequest) -> None:
        if self._active is None or self._active.id == request.id:
            self._active = request

    async def _notify(self, key: str, **kwargs) -> None:
        if self._notifier is not None:
            await self._notifier.notify(key, **kwargs)


__all__ = ["PaymentRequestManager"]
