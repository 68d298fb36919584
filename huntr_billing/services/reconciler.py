"""On-demand synchronisation of the cached payment request with the server."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal

from huntr_billing.domain.models import NotificationKind, PaymentRequest
from huntr_billing.logging import logger
from huntr_billing.services.exceptions import NetworkError, NotFoundError
from huntr_billing.services.notifications import NotificationCenter
from huntr_billing.services.payments import PaymentRequestManager
from huntr_billing.utils.datetime import Clock, utc_now

ReconcileOutcome = Literal[
    "noop",
    "pending",
    "awaiting_review",
    "approved",
    "rejected",
    "expired",
    "cancelled",
    "stale",
]
ProfileRefresher = Callable[[], Awaitable[Any]]


@dataclass(slots=True)
class ReconcileResult:
    outcome: ReconcileOutcome
    request: PaymentRequest | None = None
    source: Literal["server", "local"] = "server"


class PollingReconciler:
    """Pulls the authoritative state of the cached request and applies side effects.

    Invoked by the caller (refresh action, screen-visible timer); there is no
    background loop. Server state always wins over the local expiry clock.
    """

    def __init__(
        self,
        manager: PaymentRequestManager,
        *,
        refresh_profile: ProfileRefresher,
        notifier: NotificationCenter | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._manager = manager
        self._refresh_profile = refresh_profile
        self._notifier = notifier
        self._clock = clock
        self._surfaced: set[tuple[str, str]] = set()
        self._lock = asyncio.Lock()

    async def reconcile(self) -> ReconcileResult:
        # Overlapping callers must not apply the same outcome twice.
        async with self._lock:
            return await self._reconcile()

    async def _reconcile(self) -> ReconcileResult:
        cached = self._manager.cached
        if cached is None:
            return ReconcileResult(outcome="noop")

        now = self._clock()
        local = cached.with_expiry_applied(now)
        try:
            server = await self._manager.fetch_status(cached.id)
        except NetworkError:
            if local.submission_state != "expired":
                raise
            # Keep the cache so the next contact can still observe an approval.
            logger.warning("reconcile_offline_expiry", request_id=cached.id)
            return ReconcileResult(outcome="expired", request=local, source="local")
        except NotFoundError:
            logger.warning("reconcile_stale_request", request_id=cached.id)
            self._manager.clear()
            return ReconcileResult(outcome="stale", request=cached)

        return await self._apply(server.with_expiry_applied(now))

    async def _apply(self, server: PaymentRequest) -> ReconcileResult:
        if server.review_state == "approved":
            await self._refresh_profile()
            self._manager.clear()
            await self._surface(
                server,
                "approved",
                kind="success",
                plan=server.plan.capitalize(),
            )
            return ReconcileResult(outcome="approved", request=server)

        if server.review_state == "rejected":
            self._manager.cache(server)
            await self._surface(
                server,
                "rejected",
                kind="error",
                note=server.admin_note or "no reason given",
            )
            return ReconcileResult(outcome="rejected", request=server)

        if server.submission_state == "expired":
            self._manager.clear()
            await self._surface(server, "expired", kind="warning")
            return ReconcileResult(outcome="expired", request=server)

        if server.submission_state == "cancelled":
            self._manager.clear()
            logger.info("reconcile_cancelled", request_id=server.id)
            return ReconcileResult(outcome="cancelled", request=server)

        self._manager.cache(server)
        outcome: ReconcileOutcome = (
            "awaiting_review" if server.submission_state == "userClaimedPaid" else "pending"
        )
        return ReconcileResult(outcome=outcome, request=server)

    async def _surface(
        self,
        request: PaymentRequest,
        outcome: str,
        *,
        kind: NotificationKind,
        **params: Any,
    ) -> None:
        key = (request.id, outcome)
        if key in self._surfaced:
            return
        self._surfaced.add(key)
        logger.info(
            "payment_outcome_surfaced",
            request_id=request.id,
            reference=request.reference,
            outcome=outcome,
        )
        if self._notifier is not None:
            params.setdefault("reference", request.reference)
            await self._notifier.notify(
                f"payment.{outcome}",
                kind=kind,
                **params,
            )


__all__ = ["PollingReconciler", "ReconcileOutcome", "ReconcileResult"]
