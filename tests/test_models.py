"""Payment request model invariants and wire parsing."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pydantic
import pytest

from huntr_billing.domain.models import PaymentRequest, UserProfile

CREATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _request(**overrides) -> PaymentRequest:
    data = {
        "id": "pay-1",
        "user_id": "user-1",
        "amount": 500000,
        "plan": "premium",
        "reference": "HUNTR_1",
        "created_at": CREATED,
        "expires_at": CREATED + timedelta(minutes=30),
    }
    data.update(overrides)
    return PaymentRequest(**data)


def test_expiry_must_follow_creation():
    with pytest.raises(pydantic.ValidationError):
        _request(expires_at=CREATED)


def test_parses_camel_case_wire_payload():
    request = PaymentRequest.model_validate(
        {
            "id": "pay-9",
            "userId": "user-1",
            "amount": 500000,
            "currency": "NGN",
            "plan": "premium",
            "submissionState": "userClaimedPaid",
            "reviewState": "awaitingReview",
            "bankDetails": {"accountNumber": "0123456789", "bankName": "ACCESS BANK", "displayedAt": "x"},
            "reference": "HUNTR_9",
            "createdAt": "2024-05-01T12:00:00Z",
            "expiresAt": "2024-05-01T12:30:00",
        }
    )
    assert request.submission_state == "userClaimedPaid"
    assert request.review_state == "awaitingReview"
    assert request.bank_details.account_number == "0123456789"
    assert request.expires_at.tzinfo is not None
    assert request.expires_at > request.created_at


def test_lazy_expiry_only_affects_pending():
    late = CREATED + timedelta(hours=1)
    assert _request().effective_submission_state(late) == "expired"
    claimed = _request(submission_state="userClaimedPaid", review_state="awaitingReview")
    assert claimed.effective_submission_state(late) == "userClaimedPaid"
    assert claimed.is_active(late) is True


def test_review_outcome_makes_request_terminal():
    approved = _request(submission_state="userClaimedPaid", review_state="approved")
    assert approved.is_terminal(CREATED) is True


def test_profile_accepts_numeric_id_and_usage():
    profile = UserProfile.model_validate(
        {
            "id": 42,
            "subscription": {"plan": "premium"},
            "apiUsage": {"dailyAnalyses": 2, "monthlyAnalyses": 10, "totalAnalyses": 99},
        }
    )
    assert profile.id == "42"
    assert profile.api_usage.daily_analyses == 2
