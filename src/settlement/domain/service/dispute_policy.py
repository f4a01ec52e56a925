"""Domain service: does a dispute have enough to go to review?

A dispute starts as OPEN when it is reviewable as filed, or NEEDS_INFO
when the customer must supply more before an admin can act.  Thresholds:

1. The order must be genuinely customer-confirmed (flag set *and*
   confirmation instant recorded).
2. Claims that items were MISSING or the WRONG_ITEM need at least
   ``MIN_EVIDENCE_URLS`` evidence URLs.  Quality and damage claims do not.
"""

from __future__ import annotations

from dataclasses import dataclass

from settlement.domain.model.order_confirmation import (
    DisputedItem,
    DisputeReason,
    DisputeStatus,
)

EVIDENCE_REQUIRED_REASONS = frozenset({DisputeReason.MISSING, DisputeReason.WRONG_ITEM})
MIN_EVIDENCE_URLS = 1


@dataclass(frozen=True)
class DisputeEvidencePolicy:
    evidence_required_reasons: frozenset[DisputeReason] = EVIDENCE_REQUIRED_REASONS
    min_evidence_urls: int = MIN_EVIDENCE_URLS

    def requires_evidence(self, items: list[DisputedItem]) -> bool:
        return any(item.reason in self.evidence_required_reasons for item in items)

    def needs_info(
        self,
        customer_confirmed: bool,
        items: list[DisputedItem],
        evidence_urls: list[str],
    ) -> bool:
        if not customer_confirmed:
            return True
        if self.requires_evidence(items) and len(evidence_urls) < self.min_evidence_urls:
            return True
        return False

    def initial_status(
        self,
        customer_confirmed: bool,
        items: list[DisputedItem],
        evidence_urls: list[str],
    ) -> DisputeStatus:
        if self.needs_info(customer_confirmed, items, evidence_urls):
            return DisputeStatus.NEEDS_INFO
        return DisputeStatus.OPEN
