"""Pending action taken — command and handler.

Used when an operator (or an automated step) resolves whatever suspended
the order. The intake region is forced to PENDING_ACTION_TAKEN, the
missing-info overlay is lifted and the CallPatient sleep is dropped.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class TakePendingAction:
    order_id = Identifier(required=True)
    save_prior_status = Boolean(default=True)


@fulfillment.command_handler(part_of=Order)
class TakePendingActionHandler:
    @handle(TakePendingAction)
    def take_pending_action(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        resolved = order.missing_status()
        if command.save_prior_status:
            order.save_pending_prior_status()
        order.pending_action_taken()
        repo.add(order)
        logger.info("pending_action_taken", order_number=order.order_number, resolved_status=resolved)
