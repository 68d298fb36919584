"""In-session notification feed for payment lifecycle events."""

from __future__ import annotations

from collections import deque
from typing import Any

from huntr_billing.domain.models import Notification, NotificationKind
from huntr_billing.i18n import I18nService
from huntr_billing.logging import logger


class NotificationCenter:
    """Collects user-facing notifications; the UI drains them with :meth:`drain`.

    At most ``max_items`` undrained notifications are kept, oldest dropped first.
    """

    def __init__(
        self,
        *,
        i18n: I18nService | None = None,
        locale: str | None = None,
        max_items: int = 50,
    ) -> None:
        self._i18n = i18n or I18nService()
        self._locale = locale
        self._items: deque[Notification] = deque(maxlen=max_items)

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    async def notify(
        self,
        key: str,
        *,
        kind: NotificationKind = "info",
        reference: str | None = None,
        **params: Any,
    ) -> Notification:
        notification = Notification(
            title=self._i18n.gettext(f"{key}.title", locale=self._locale),
            message=self._i18n.gettext(
                f"{key}.message", locale=self._locale, reference=reference, **params
            ),
            kind=kind,
            reference=reference,
        )
        self._items.append(notification)
        logger.info("notification_emitted", key=key, kind=kind, reference=reference)
        return notification

    def drain(self) -> list[Notification]:
        items = list(self._items)
        self._items.clear()
        return items


__all__ = ["NotificationCenter"]
