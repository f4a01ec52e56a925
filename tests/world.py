"""A fully wired settlement system on top of the in-memory fakes."""

from __future__ import annotations

from datetime import timedelta
from itertools import count

from settlement.application.confirm_items import ConfirmItemsHandler
from settlement.application.file_dispute import FileDisputeHandler
from settlement.application.issue_quote import IssueQuoteHandler
from settlement.application.record_receipt_verification import (
    RecordReceiptVerificationHandler,
)
from settlement.application.resolve_dispute import ResolveDisputeHandler
from settlement.application.show_settlement import ShowSettlementHandler
from settlement.application.submit_delivery_request import SubmitDeliveryRequestHandler
from settlement.application.unlock_delivery_request import UnlockDeliveryRequestHandler
from settlement.domain.model.delivery_request import DeliveryRequest
from settlement.domain.model.quote import ServiceType
from settlement.domain.model.receipt_verification import (
    ExtractedReceipt,
    VerificationStatus,
)
from settlement.domain.model.value_objects import Money
from settlement.domain.service.audit_trail import AuditTrail
from settlement.domain.service.lock_evaluator import LockEvaluator
from settlement.domain.service.quote_signer import QuoteSigner
from settlement.domain.service.submission_validator import SubmissionValidator
from tests.fakes import (
    T0,
    FakeAuditLogRepository,
    FakeDeliveryRequestRepository,
    FakeOrderConfirmationRepository,
    FakeReceiptVerificationRepository,
    FixedClock,
)

SECRET = "test-quote-secret"

_images = count(1)


def unique_image() -> bytes:
    return f"receipt-image-{next(_images)}".encode()


class World:

    def __init__(self) -> None:
        self.clock = FixedClock()
        self.signer = QuoteSigner(SECRET)
        self.requests = FakeDeliveryRequestRepository()
        self.receipts = FakeReceiptVerificationRepository()
        self.confirmations = FakeOrderConfirmationRepository()
        self.audit_log = FakeAuditLogRepository()
        self.audit_trail = AuditTrail(self.audit_log)
        self.evaluator = LockEvaluator(
            self.requests, self.receipts, self.confirmations, self.audit_trail, self.clock
        )

        self.issue_quote = IssueQuoteHandler(self.signer, self.clock)
        self.submit = SubmitDeliveryRequestHandler(
            self.requests, SubmissionValidator(self.signer), self.clock
        )
        self.record_receipt = RecordReceiptVerificationHandler(
            self.requests, self.receipts, self.evaluator, self.clock
        )
        self.confirm = ConfirmItemsHandler(
            self.requests, self.receipts, self.confirmations, self.evaluator, clock=self.clock
        )
        self.dispute = FileDisputeHandler(self.requests, self.confirmations, self.evaluator)
        self.resolve = ResolveDisputeHandler(self.confirmations, self.clock)
        self.unlock = UnlockDeliveryRequestHandler(self.evaluator)
        self.show = ShowSettlementHandler(
            self.requests, self.confirmations, self.evaluator, self.audit_trail
        )

    # --- Builders -------------------------------------------------------------

    def new_request(self, user_id: str = "cust-1", **fields) -> str:
        request = DeliveryRequest.create(
            user_id=user_id,
            service_type=fields.pop("service_type", ServiceType.FOOD),
            pickup_address=fields.pop("pickup_address", "1 Market St"),
            dropoff_address=fields.pop("dropoff_address", "9 Elm Ave"),
            scheduled_start=fields.pop("scheduled_start", T0 + timedelta(hours=2)),
            created_at=self.clock(),
            **fields,
        )
        self.requests.save(request)
        return request.id

    def verify_receipt(
        self,
        request_id: str,
        status: VerificationStatus = VerificationStatus.APPROVED,
        items: list[dict] | None = None,
        subtotal: str | None = None,
        image: bytes | None = None,
    ):
        extracted = ExtractedReceipt(
            vendor_name="Corner Market",
            subtotal=Money.of(subtotal) if subtotal is not None else None,
            items=items or [],
        )
        return self.record_receipt.handle(
            request_id, image or unique_image(), status, extracted
        )
