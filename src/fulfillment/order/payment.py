"""Payment commands — authorize a pending charge, attach a payment method."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order
from fulfillment.references.models import Payment

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class AuthorizePayment:
    """The patient approved the charge shown to them."""

    order_id = Identifier(required=True)


@fulfillment.command(part_of="Order")
class AttachPayment:
    """Attach a stored payment method to the order."""

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)


@fulfillment.command_handler(part_of=Order)
class PaymentHandler:
    @handle(AuthorizePayment)
    def authorize_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not order.authorize_payment():
            logger.info(
                "payment_authorization_ignored",
                order_number=order.order_number,
                payment_status=order.payment_status(),
            )
            return False
        repo.add(order)
        logger.info("payment_authorized", order_number=order.order_number)
        return True

    @handle(AttachPayment)
    def attach_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        payment = current_domain.repository_for(Payment).get(command.payment_id)
        order.add_payment(payment)
        repo.add(order)
        logger.info("payment_attached", order_number=order.order_number, payment_id=command.payment_id)
