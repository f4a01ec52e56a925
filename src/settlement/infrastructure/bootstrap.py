"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from settlement.domain.clock import Clock, utc_now
from settlement.domain.service.audit_trail import AuditTrail
from settlement.domain.service.lock_evaluator import LockEvaluator
from settlement.domain.service.quote_signer import QuoteSigner
from settlement.domain.service.submission_validator import SubmissionValidator
from settlement.infrastructure.config import Settings
from settlement.infrastructure.persistence.json_audit_log_repository import (
    JsonAuditLogRepository,
)
from settlement.infrastructure.persistence.json_delivery_request_repository import (
    JsonDeliveryRequestRepository,
)
from settlement.infrastructure.persistence.json_order_confirmation_repository import (
    JsonOrderConfirmationRepository,
)
from settlement.infrastructure.persistence.json_receipt_verification_repository import (
    JsonReceiptVerificationRepository,
)
from settlement.infrastructure.persistence.json_user_repository import (
    JsonUserRepository,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


@dataclass(frozen=True)
class Repositories:
    delivery_requests: JsonDeliveryRequestRepository
    receipts: JsonReceiptVerificationRepository
    confirmations: JsonOrderConfirmationRepository
    audit_log: JsonAuditLogRepository
    users: JsonUserRepository


def repositories(settings: Settings) -> Repositories:
    data_dir = settings.data_dir
    return Repositories(
        delivery_requests=JsonDeliveryRequestRepository(data_dir / "delivery_requests.json"),
        receipts=JsonReceiptVerificationRepository(data_dir / "receipt_verifications.json"),
        confirmations=JsonOrderConfirmationRepository(data_dir / "order_confirmations.json"),
        audit_log=JsonAuditLogRepository(data_dir / "audit_log.json"),
        users=JsonUserRepository(data_dir / "users.json"),
    )


def quote_signer(settings: Settings) -> QuoteSigner:
    return QuoteSigner(settings.quote_token_secret)


def submission_validator(settings: Settings) -> SubmissionValidator:
    return SubmissionValidator(quote_signer(settings))


def lock_evaluator(repos: Repositories, clock: Clock = utc_now) -> LockEvaluator:
    return LockEvaluator(
        request_repo=repos.delivery_requests,
        receipt_repo=repos.receipts,
        confirmation_repo=repos.confirmations,
        audit_trail=AuditTrail(repos.audit_log),
        clock=clock,
    )
