"""Domain service: Submission Validator.

Binds a delivery submission to the exact parameters it was quoted with.
A submission carrying a quote token must reproduce every priced field;
any divergence is rejected outright rather than silently re-priced.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from settlement.domain.clock import normalize_instant
from settlement.domain.exceptions import QuoteExpired, QuoteMismatch, TokenUserMismatch
from settlement.domain.model.quote import PRICED_FIELDS, QuotePayload
from settlement.domain.model.submission import DeliverySubmission
from settlement.domain.service.quote_signer import QuoteSigner

QUOTE_FRESHNESS = timedelta(minutes=20)

# Fields a client may omit; the quote's values are used instead.
_LOCKED_IN_FIELDS = ("priority_slot", "preferred_driver_id", "lock_to_preferred")


@dataclass(frozen=True)
class SubmissionDecision:
    """What the submission proceeds with."""

    quote: QuotePayload | None
    priority_slot: bool
    preferred_driver_id: str | None
    lock_to_preferred: bool
    advance_discount_max: int


class SubmissionValidator:

    def __init__(self, signer: QuoteSigner) -> None:
        self._signer = signer

    def validate(
        self,
        submission: DeliverySubmission,
        quote_token: str | None,
        now: datetime,
    ) -> SubmissionDecision:
        """Check a submission against its quote token, if it has one.

        Order of checks: token authenticity, token subject, priced
        fields, freshness.  Without a token the submission proceeds on
        the direct-pricing path with its own values.
        """
        if not quote_token:
            return SubmissionDecision(
                quote=None,
                priority_slot=bool(submission.priority_slot),
                preferred_driver_id=submission.preferred_driver_id,
                lock_to_preferred=bool(submission.lock_to_preferred),
                advance_discount_max=0,
            )

        quote = self._signer.verify(quote_token)

        if quote.user_id != submission.user_id:
            raise TokenUserMismatch("Quote token was issued to a different user")

        mismatched = self._mismatched_fields(submission, quote)
        if mismatched:
            raise QuoteMismatch(
                "Submission does not match the quoted parameters, please re-quote",
                mismatched,
            )

        age = normalize_instant(now) - quote.quoted_at
        if age > QUOTE_FRESHNESS:
            minutes = int(QUOTE_FRESHNESS.total_seconds() // 60)
            raise QuoteExpired(
                f"Quote is older than {minutes} minutes, please re-quote"
            )

        return SubmissionDecision(
            quote=quote,
            priority_slot=quote.priority_slot,
            preferred_driver_id=quote.preferred_driver_id,
            lock_to_preferred=quote.lock_to_preferred,
            advance_discount_max=quote.advance_discount_max,
        )

    @staticmethod
    def _mismatched_fields(
        submission: DeliverySubmission, quote: QuotePayload
    ) -> list[str]:
        mismatched: list[str] = []
        for name in PRICED_FIELDS:
            submitted = getattr(submission, name)
            if name in _LOCKED_IN_FIELDS and submitted is None:
                continue
            quoted = getattr(quote, name)
            # bool is an int subclass; True must not match 1.
            if type(submitted) is not type(quoted) or submitted != quoted:
                mismatched.append(name)
        return mismatched
