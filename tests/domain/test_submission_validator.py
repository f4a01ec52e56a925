"""Unit tests for binding a submission to its quote token."""

from datetime import datetime, timedelta, timezone

import pytest

from settlement.domain.exceptions import (
    InvalidSignature,
    QuoteExpired,
    QuoteMismatch,
    TokenUserMismatch,
)
from settlement.domain.model.quote import PRICED_FIELDS, QuotePayload, ServiceType
from settlement.domain.model.submission import DeliverySubmission
from settlement.domain.service.quote_signer import QuoteSigner
from settlement.domain.service.submission_validator import SubmissionValidator

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
START = T0 + timedelta(hours=2)

# One differing value per priced field, against the quote built in _setup().
CHANGED_FIELDS = {
    "service_type": ServiceType.STORE,
    "scheduled_start": START + timedelta(hours=1),
    "travel_minutes": 25,
    "wait_minutes": 5,
    "sit_and_wait": True,
    "number_of_stops": 2,
    "return_or_exchange": True,
    "cash_handling": True,
    "peak_hours": True,
    "priority_slot": False,
    "preferred_driver_id": "drv-9",
    "lock_to_preferred": False,
}


def _setup():
    signer = QuoteSigner("s3cret")
    token = signer.sign(
        QuotePayload(
            user_id="cust-1",
            service_type=ServiceType.FOOD,
            scheduled_start=START,
            travel_minutes=20,
            wait_minutes=0,
            sit_and_wait=False,
            number_of_stops=1,
            return_or_exchange=False,
            cash_handling=False,
            peak_hours=False,
            priority_slot=True,
            preferred_driver_id="drv-7",
            lock_to_preferred=True,
            advance_discount_max=10,
            quoted_at=T0,
        )
    )
    return SubmissionValidator(signer), token


def _submission(**overrides) -> DeliverySubmission:
    fields = dict(
        user_id="cust-1",
        service_type=ServiceType.FOOD,
        pickup_address="1 Market St",
        dropoff_address="9 Elm Ave",
        scheduled_start=START,
        travel_minutes=20,
    )
    fields.update(overrides)
    return DeliverySubmission(**fields)


class TestMatchingSubmission:

    def test_accepted_with_quote_values(self):
        validator, token = _setup()
        decision = validator.validate(_submission(), token, T0 + timedelta(minutes=5))

        assert decision.quote is not None
        assert decision.priority_slot is True
        assert decision.preferred_driver_id == "drv-7"
        assert decision.lock_to_preferred is True
        assert decision.advance_discount_max == 10

    def test_explicitly_repeated_locked_in_fields_accepted(self):
        validator, token = _setup()
        submission = _submission(
            priority_slot=True, preferred_driver_id="drv-7", lock_to_preferred=True
        )
        assert validator.validate(submission, token, T0).quote is not None

    def test_same_instant_in_another_offset_matches(self):
        validator, token = _setup()
        shifted = START.astimezone(timezone(timedelta(hours=-5)))
        validator.validate(_submission(scheduled_start=shifted), token, T0)

    def test_no_token_uses_client_values(self):
        validator, _ = _setup()
        decision = validator.validate(_submission(priority_slot=True), None, T0)
        assert decision.quote is None
        assert decision.priority_slot is True
        assert decision.lock_to_preferred is False
        assert decision.advance_discount_max == 0


class TestRejectedSubmission:

    def test_every_priced_field_has_a_change_case(self):
        assert set(CHANGED_FIELDS) == set(PRICED_FIELDS)

    @pytest.mark.parametrize("name", sorted(CHANGED_FIELDS))
    def test_changing_one_priced_field_is_mismatch(self, name):
        validator, token = _setup()
        with pytest.raises(QuoteMismatch) as exc_info:
            validator.validate(_submission(**{name: CHANGED_FIELDS[name]}), token, T0)
        assert exc_info.value.details == [name]

    def test_all_mismatched_fields_listed(self):
        validator, token = _setup()
        with pytest.raises(QuoteMismatch) as exc_info:
            validator.validate(
                _submission(peak_hours=True, number_of_stops=2, preferred_driver_id="drv-9"),
                token,
                T0,
            )
        assert set(exc_info.value.details) == {
            "peak_hours",
            "number_of_stops",
            "preferred_driver_id",
        }

    def test_other_users_token(self):
        validator, token = _setup()
        with pytest.raises(TokenUserMismatch):
            validator.validate(_submission(user_id="cust-2"), token, T0)

    def test_user_checked_before_fields(self):
        validator, token = _setup()
        with pytest.raises(TokenUserMismatch):
            validator.validate(_submission(user_id="cust-2", travel_minutes=25), token, T0)

    def test_mismatch_reported_before_expiry(self):
        validator, token = _setup()
        with pytest.raises(QuoteMismatch):
            validator.validate(
                _submission(travel_minutes=25), token, T0 + timedelta(minutes=25)
            )

    def test_tampered_token(self):
        validator, token = _setup()
        with pytest.raises(InvalidSignature):
            validator.validate(_submission(), token[:-2] + ("AA" if token[-2:] != "AA" else "BB"), T0)


class TestFreshness:

    def test_expired_after_twenty_minutes(self):
        validator, token = _setup()
        with pytest.raises(QuoteExpired, match="re-quote"):
            validator.validate(_submission(), token, T0 + timedelta(minutes=25))

    def test_nineteen_minutes_is_fresh(self):
        validator, token = _setup()
        validator.validate(_submission(), token, T0 + timedelta(minutes=19))

    def test_exactly_twenty_minutes_is_fresh(self):
        validator, token = _setup()
        validator.validate(_submission(), token, T0 + timedelta(minutes=20))

    def test_twenty_one_minutes_is_stale(self):
        validator, token = _setup()
        with pytest.raises(QuoteExpired):
            validator.validate(_submission(), token, T0 + timedelta(minutes=21))
