"""HTTP client for the payment, plan and profile endpoints of the backend."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import pydantic

from huntr_billing.config import ApiSettings
from huntr_billing.domain.models import PaymentRequest, UsagePlan, UserProfile
from huntr_billing.logging import logger
from huntr_billing.services.exceptions import (
    AuthError,
    BackendError,
    BillingError,
    ConflictError,
    NetworkError,
    NotFoundError,
    QuotaExceededError,
    StateError,
    ValidationError,
)
from huntr_billing.utils.retry import retry_async

QUOTA_LIMIT_TYPES = {"daily", "monthly"}


class BackendClient:
    """Thin async wrapper mapping backend responses onto domain models.

    Reads are retried on :class:`NetworkError`; writes (create, claim, cancel)
    are sent once and the failure is surfaced to the caller.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: ApiSettings | None = None,
        *,
        token: str | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or ApiSettings()
        self._base_url = str(self._settings.base_url).rstrip("/")
        self._token = token
        if self._token is None and self._settings.token is not None:
            self._token = self._settings.token.get_secret_value()

    # Payment requests -------------------------------------------------

    async def create_payment_request(self, plan: str) -> PaymentRequest:
        data = await self._request("POST", "/payment/initiate", json={"plan": plan})
        return self._parse_request(data)

    async def claim_paid(self, request_id: str) -> PaymentRequest:
        data = await self._request("POST", f"/payment/confirm/{quote(request_id, safe='')}")
        return self._parse_request(data)

    async def fetch_status(self, request_id: str) -> PaymentRequest:
        data = await self._request(
            "GET",
            f"/payment/status/{quote(request_id, safe='')}",
            retry=True,
        )
        return self._parse_request(data)

    async def cancel(self, request_id: str) -> PaymentRequest:
        data = await self._request("DELETE", f"/payment/cancel/{quote(request_id, safe='')}")
        return self._parse_request(data)

    async def fetch_active_request(self) -> PaymentRequest | None:
        data = await self._request("GET", "/payment/pending", retry=True)
        if not data.get("paymentRequest"):
            return None
        return self._parse_request(data)

    # Plans and profile ------------------------------------------------

    async def fetch_plans(self) -> list[UsagePlan]:
        data = await self._request("GET", "/payment/plans", retry=True)
        raw_plans = data.get("plans") or {}
        if not isinstance(raw_plans, dict):
            raise BackendError("Plan catalog payload is malformed.")
        plans: list[UsagePlan] = []
        try:
            for plan_id, entry in raw_plans.items():
                features = entry.get("features") or {}
                plans.append(
                    UsagePlan(
                        id=plan_id,
                        name=entry.get("name") or plan_id,
                        daily_limit=features.get("dailyAnalyses", 0),
                        monthly_limit=features.get("monthlyAnalyses", 0),
                        price=entry.get("price", 0),
                        currency=entry.get("currency", "NGN"),
                        duration_days=entry.get("duration"),
                    )
                )
        except (AttributeError, pydantic.ValidationError) as exc:
            raise BackendError(f"Plan catalog payload is malformed: {exc}") from exc
        return plans

    async def fetch_profile(self) -> UserProfile:
        data = await self._request("GET", "/auth/profile", retry=True)
        raw = data.get("user", data)
        try:
            return UserProfile.model_validate(raw)
        except pydantic.ValidationError as exc:
            raise BackendError(f"Profile payload is malformed: {exc}") from exc

    # Internal helpers -------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        retry: bool = False,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"

        async def _send() -> httpx.Response:
            try:
                response = await self._client.request(
                    method,
                    url,
                    json=json,
                    headers=self._headers(),
                    timeout=self._settings.request_timeout_seconds,
                )
            except httpx.TimeoutException as exc:
                raise NetworkError(f"{method} {path} timed out") from exc
            except httpx.RequestError as exc:
                raise NetworkError(f"{method} {path} failed: {exc}") from exc
            if response.is_error:
                raise self._translate_error(response)
            return response

        if retry:
            response = await retry_async(
                _send,
                max_attempts=self._settings.read_max_attempts,
                base_delay=self._settings.retry_base_delay,
                retry_on=(NetworkError,),
                logger=logger,
                operation_name=f"{method} {path}",
            )
        else:
            response = await _send()

        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise BackendError(
                f"{method} {path} returned an unexpected payload",
                status_code=response.status_code,
            )
        return data

    @staticmethod
    def _parse_request(data: dict[str, Any]) -> PaymentRequest:
        raw = data.get("paymentRequest")
        if raw is None:
            raise BackendError("Response is missing paymentRequest.")
        try:
            return PaymentRequest.model_validate(raw)
        except pydantic.ValidationError as exc:
            raise BackendError(f"Payment request payload is malformed: {exc}") from exc

    @staticmethod
    def _translate_error(response: httpx.Response) -> BillingError:
        """Map an error response to a domain exception using its structured code."""

        status = response.status_code
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        code = payload.get("code")
        message = payload.get("error") or response.reason_phrase or f"HTTP {status}"

        logger.info("backend_error_response", status=status, code=code)

        if code == "quota_exceeded":
            limit_type = payload.get("limitType")
            return QuotaExceededError(
                message,
                limit_type=limit_type if limit_type in QUOTA_LIMIT_TYPES else "daily",
                can_upgrade=bool(payload.get("requiresUpgrade", False)),
            )
        if code == "unauthorized" or status == 401:
            return AuthError(message)
        if code == "invalid_state":
            return StateError(message)
        if code == "active_request_exists" or status == 409:
            return ConflictError(message)
        if code == "not_found" or status == 404:
            return NotFoundError(message)
        if code == "validation_error" or status in (400, 422):
            return ValidationError(message)
        return BackendError(message, status_code=status)


__all__ = ["BackendClient"]
