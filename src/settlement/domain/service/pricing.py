"""Domain service: billable total frozen at confirmation time.

The pricing formulas themselves belong to the pricing collaborator; this
calculator only combines what is recorded on the delivery request.
"""

from __future__ import annotations

from settlement.domain.model.delivery_request import DeliveryRequest
from settlement.domain.model.value_objects import Money
from settlement.domain.service.snapshot import ReceiptLinesSource


class BillableTotalCalculator:
    """``max(0, receipt subtotal + delivery fee - discount)``, in whole cents.

    The receipt subtotal is the recorded subtotal when present, otherwise
    the sum of the priced receipt lines.
    """

    def total_for(self, request: DeliveryRequest) -> Money:
        subtotal = request.receipt_subtotal
        if subtotal is None:
            subtotal = Money.zero()
            for item in ReceiptLinesSource(request.receipt_items).items():
                subtotal = subtotal + item.line_total
        base = subtotal + request.delivery_fee
        return base.minus_floor_zero(request.discount).quantized()
