"""Scrub and route — command and handler.

Moves an order past the welcome call: intake regions still at NOT_INITIATED
advance to CALL_COMPLETED. Repeating the command changes nothing.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class MoveToScrubAndRoute:
    order_id = Identifier(required=True)


@fulfillment.command_handler(part_of=Order)
class MoveToScrubAndRouteHandler:
    @handle(MoveToScrubAndRoute)
    def move_to_scrub_and_route(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.move_to_scrub_and_route()
        repo.add(order)
        logger.info(
            "order_scrubbed_and_routed",
            order_number=order.order_number,
            transfer_status=order.transfer_status(),
            new_rx_status=order.new_prescription_status(),
        )
