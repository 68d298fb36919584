"""Advisory usage-quota checks for the billable chart analysis action."""

from __future__ import annotations

from huntr_billing.domain.models import QuotaDecision, UsageCounters, UsagePlan
from huntr_billing.i18n import I18nService
from huntr_billing.services.exceptions import QuotaExceededError
from huntr_billing.services.plan_catalog import PlanCatalog


class UsageQuotaGate:
    """Pre-empts actions the server would reject for quota reasons.

    The decision is advisory: the server enforces quotas when the action is
    consumed, so callers must still handle :class:`QuotaExceededError` after
    an ``allowed`` decision (e.g. two sessions racing for the last slot).
    """

    def __init__(
        self,
        catalog: PlanCatalog,
        *,
        i18n: I18nService | None = None,
        locale: str | None = None,
    ) -> None:
        self._catalog = catalog
        self._i18n = i18n or I18nService()
        self._locale = locale

    async def check(self, plan: str, counters: UsageCounters) -> QuotaDecision:
        usage_plan = await self._catalog.get(plan)
        upgrade_plan = await self._upgrade_target(usage_plan)
        daily_remaining = max(0, usage_plan.daily_limit - counters.daily_analyses)
        monthly_remaining = max(0, usage_plan.monthly_limit - counters.monthly_analyses)

        if daily_remaining == 0:
            limit_type = "daily"
        elif monthly_remaining == 0:
            limit_type = "monthly"
        else:
            return QuotaDecision(
                allowed=True,
                limit_type="none",
                can_upgrade=upgrade_plan is not None,
                message=self._text(
                    "quota.allowed",
                    daily_remaining=daily_remaining,
                    monthly_remaining=monthly_remaining,
                ),
                daily_remaining=daily_remaining,
                monthly_remaining=monthly_remaining,
            )

        limit = usage_plan.daily_limit if limit_type == "daily" else usage_plan.monthly_limit
        message = self._text(f"quota.{limit_type}_exceeded", limit=limit, plan=usage_plan.name)
        if upgrade_plan is not None:
            message = f"{message} {self._text('quota.upgrade_hint', upgrade_plan=upgrade_plan.name)}"
        return QuotaDecision(
            allowed=False,
            limit_type=limit_type,
            can_upgrade=upgrade_plan is not None,
            message=message,
            daily_remaining=daily_remaining,
            monthly_remaining=monthly_remaining,
        )

    async def from_rejection(self, error: QuotaExceededError, plan: str) -> QuotaDecision:
        """Turn a server-side quota rejection into a decision the UI can prompt on."""

        usage_plan = await self._catalog.get(plan)
        upgrade_plan = await self._upgrade_target(usage_plan)
        can_upgrade = upgrade_plan is not None
        error.can_upgrade = can_upgrade
        message = self._text("quota.server_rejected", limit_type=error.limit_type)
        if upgrade_plan is not None:
            message = f"{message} {self._text('quota.upgrade_hint', upgrade_plan=upgrade_plan.name)}"
        return QuotaDecision(
            allowed=False,
            limit_type=error.limit_type,
            can_upgrade=can_upgrade,
            message=message,
        )

    async def _upgrade_target(self, plan: UsagePlan) -> UsagePlan | None:
        # Upgrades are only offered from the entry tier.
        lowest = await self._catalog.lowest_tier()
        if plan.id != lowest.id:
            return None
        return await self._catalog.next_tier(plan.id)

    def _text(self, key: str, **kwargs) -> str:
        return self._i18n.gettext(key, locale=self._locale, **kwargs)


__all__ = ["UsageQuotaGate"]
