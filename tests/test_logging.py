from __future__ import annotations

import pytest
import structlog

from huntr_billing.config import BillingSettings
from huntr_billing.logging import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def test_dev_environment_renders_for_the_console():
    configure_logging(BillingSettings(environment="dev"))

    renderer = structlog.get_config()["processors"][-1]
    assert isinstance(renderer, structlog.dev.ConsoleRenderer)


def test_deployed_environment_renders_json(capsys):
    configure_logging(BillingSettings(environment="prod"))

    structlog.get_logger("huntr_billing").info("payment_initiated", reference="HUNTR_0001")

    line = capsys.readouterr().out.strip()
    assert '"event": "payment_initiated"' in line
    assert '"reference": "HUNTR_0001"' in line
    assert '"environment": "prod"' in line
