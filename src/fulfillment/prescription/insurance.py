"""Insurance intake — command and handler.

Attaching insurance to a prescription releases its current order from any
insurance exception and sends it back through routing.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order
from fulfillment.prescription.prescription import Prescription
from fulfillment.references.models import Insurance

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Prescription")
class AttachInsurance:
    rx_id = Identifier(required=True)
    insurance_id = Identifier(required=True)


@fulfillment.command_handler(part_of=Prescription)
class InsuranceIntakeHandler:
    @handle(AttachInsurance)
    def attach_insurance(self, command):
        rx_repo = current_domain.repository_for(Prescription)
        order_repo = current_domain.repository_for(Order)

        rx = rx_repo.get(command.rx_id)
        insurance = current_domain.repository_for(Insurance).get(command.insurance_id)
        order = order_repo.get(rx.current_order_id) if rx.current_order_id else None

        rx.add_insurance(insurance, order)
        rx_repo.add(rx)
        if order is not None:
            order_repo.add(order)

        logger.info(
            "insurance_attached",
            rx_id=command.rx_id,
            insurance_id=command.insurance_id,
            order_number=order.order_number if order is not None else None,
        )
