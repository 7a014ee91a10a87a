"""Missing-info overlay — the single exception record that suspends an order.

Only the most recent exception is tracked; setting a new overlay replaces
the previous one wholesale.
"""

from protean.fields import List, String

from fulfillment.domain import fulfillment
from fulfillment.order.vocabulary import (
    InsuranceExceptionType,
    MissingStatus,
    RefillDeniedType,
)


@fulfillment.value_object(part_of="Order")
class MissingInfoState:
    missing_fields = List(content_type=String)
    missing_status = String(required=True, max_length=50, choices=MissingStatus)
    comment = String(max_length=1000, default="")
    insurance_exception_type = String(max_length=50, choices=InsuranceExceptionType)
    refill_denied_type = String(max_length=50, choices=RefillDeniedType)

    def has_status(self, *statuses: MissingStatus) -> bool:
        return self.missing_status in {MissingStatus(status).value for status in statuses}
