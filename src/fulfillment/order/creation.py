"""Order initialization — command and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.numbering import OrderNumberGenerator
from fulfillment.order.order import Order
from fulfillment.order.vocabulary import OriginType, PaymentOption

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class InitializeOrder:
    """Open a new order for a prescription.

    A fresh order number is drawn unless one is supplied.
    """

    origin_type = String(required=True, max_length=30, choices=OriginType)
    order_number = String(max_length=20)
    rx_id = Identifier()
    payment_option = String(max_length=30, choices=PaymentOption)


@fulfillment.command_handler(part_of=Order)
class InitializeOrderHandler:
    generator = OrderNumberGenerator()

    @handle(InitializeOrder)
    def initialize_order(self, command):
        repo = current_domain.repository_for(Order)
        order_number = command.order_number
        if order_number is None:
            order_number = self.generator.generate_unique(repo)
        elif repo.find_by_order_number(order_number) is not None:
            raise ValidationError({"order_number": [f"Order number {order_number} is already in use"]})

        order = Order.initialize(order_number, command.origin_type)
        order.rx_id = command.rx_id
        order.payment_option = command.payment_option
        repo.add(order)

        logger.info("order_initialized", order_number=order_number, origin_type=command.origin_type)
        return str(order.id)
