"""Cached view of the backend's plan definitions."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from huntr_billing.domain.models import UsagePlan
from huntr_billing.logging import logger
from huntr_billing.services.api_client import BackendClient
from huntr_billing.services.exceptions import ValidationError
from huntr_billing.utils.datetime import Clock, utc_now


class PlanCatalog:
    """Fetches plans once per session and serves them from memory.

    Plans are immutable for the lifetime of the cache; only :meth:`refresh`
    (or an expired ``max_age``) replaces them.
    """

    def __init__(
        self,
        backend: BackendClient,
        *,
        max_age: timedelta | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._backend = backend
        self._max_age = max_age
        self._clock = clock
        self._plans: dict[str, UsagePlan] | None = None
        self._fetched_at: datetime | None = None
        self._lock = asyncio.Lock()

    async def plans(self) -> list[UsagePlan]:
        """All plans ordered from lowest to highest tier."""

        plans = await self._ensure_loaded()
        return sorted(plans.values(), key=self._tier_key)

    async def get(self, plan_id: str) -> UsagePlan:
        plans = await self._ensure_loaded()
        plan = plans.get(plan_id)
        if plan is None:
            raise ValidationError(f"Unknown plan: {plan_id!r}.")
        return plan

    async def lowest_tier(self) -> UsagePlan:
        ordered = await self.plans()
        if not ordered:
            raise ValidationError("Plan catalog is empty.")
        return ordered[0]

    async def next_tier(self, plan_id: str) -> UsagePlan | None:
        """The cheapest plan ranked above ``plan_id``, if any."""

        current = await self.get(plan_id)
        for plan in await self.plans():
            if self._tier_key(plan) > self._tier_key(current):
                return plan
        return None

    async def refresh(self) -> list[UsagePlan]:
        async with self._lock:
            await self._load()
        return await self.plans()

    def invalidate(self) -> None:
        self._plans = None
        self._fetched_at = None

    async def _ensure_loaded(self) -> dict[str, UsagePlan]:
        if self._is_fresh():
            assert self._plans is not None
            return self._plans
        async with self._lock:
            if not self._is_fresh():
                await self._load()
        assert self._plans is not None
        return self._plans

    def _is_fresh(self) -> bool:
        if self._plans is None or self._fetched_at is None:
            return False
        if self._max_age is None:
            return True
        return self._clock() - self._fetched_at < self._max_age

    async def _load(self) -> None:
        plans = await self._backend.fetch_plans()
        self._plans = {plan.id: plan for plan in plans}
        self._fetched_at = self._clock()
        logger.info("plan_catalog_loaded", plans=sorted(self._plans))

    @staticmethod
    def _tier_key(plan: UsagePlan) -> tuple[int, int, int, str]:
        return (plan.price, plan.monthly_limit, plan.daily_limit, plan.id)


__all__ = ["PlanCatalog"]
