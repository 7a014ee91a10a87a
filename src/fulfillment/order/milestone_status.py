"""Operator milestone status update — command and handler.

Operators may set a region's status directly, but only to one of
``UPDATABLE_MILESTONE_STATUSES``. Orders are addressed by order number.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.exceptions import InvalidEnumValueError
from fulfillment.order.order import Order
from fulfillment.order.vocabulary import (
    UPDATABLE_MILESTONE_STATUSES,
    MilestoneStatus,
    RegionKind,
    coerce,
)

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class UpdateMilestoneStatus:
    order_number = String(required=True, max_length=20)
    milestone = String(required=True, max_length=50)
    status = String(required=True, max_length=60)


@fulfillment.command_handler(part_of=Order)
class UpdateMilestoneStatusHandler:
    @handle(UpdateMilestoneStatus)
    def update_milestone_status(self, command):
        region = coerce(RegionKind, command.milestone, "milestone")
        status = coerce(MilestoneStatus, command.status, "status")
        if status not in UPDATABLE_MILESTONE_STATUSES:
            raise InvalidEnumValueError(
                "status",
                command.status,
                sorted(allowed.value for allowed in UPDATABLE_MILESTONE_STATUSES),
            )

        repo = current_domain.repository_for(Order)
        order = repo.find_by_order_number(command.order_number)
        if order is None:
            raise ObjectNotFoundError(f"Order with order number `{command.order_number}` does not exist")

        order.update_milestone_status(region, status)
        repo.add(order)
        logger.info(
            "milestone_status_updated",
            order_number=command.order_number,
            milestone=region.value,
            status=status.value,
        )
