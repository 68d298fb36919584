"""Payment request lifecycle and usage quota client core."""

from huntr_billing.services.session import BillingSession

__all__ = ["BillingSession"]
