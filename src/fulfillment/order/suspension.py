"""Suspension commands — set or lift the missing-info overlay, override insurance."""

import structlog
from protean import handle
from protean.fields import Identifier, List, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order
from fulfillment.order.vocabulary import (
    InsuranceExceptionType,
    MissingStatus,
    RefillDeniedType,
    RegionKind,
    coerce,
)

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class SetMissingInfo:
    """Suspend an order, replacing any exception already recorded."""

    order_id = Identifier(required=True)
    missing_status = String(required=True, max_length=50, choices=MissingStatus)
    missing_fields = List(content_type=String)
    comment = String(max_length=1000, default="")
    insurance_exception_type = String(max_length=50, choices=InsuranceExceptionType)
    refill_denied_type = String(max_length=50, choices=RefillDeniedType)


@fulfillment.command(part_of="Order")
class ClearMissingInfo:
    """Lift the overlay; with ``only_statuses``, only when it carries one of them."""

    order_id = Identifier(required=True)
    only_statuses = List(content_type=String)


@fulfillment.command(part_of="Order")
class OverrideInsurance:
    """Ship without waiting for insurance verification."""

    order_id = Identifier(required=True)


@fulfillment.command_handler(part_of=Order)
class SuspensionHandler:
    @handle(SetMissingInfo)
    def set_missing_info(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        replaced = order.missing_status()
        order.set_missing_info_state(
            command.missing_status,
            missing_fields=command.missing_fields,
            comment=command.comment or "",
            insurance_exception_type=command.insurance_exception_type,
            refill_denied_type=command.refill_denied_type,
        )
        repo.add(order)
        logger.info(
            "order_suspended",
            order_number=order.order_number,
            missing_status=command.missing_status,
            replaced_status=replaced,
        )

    @handle(ClearMissingInfo)
    def clear_missing_info(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        statuses = [coerce(MissingStatus, status, "only_statuses") for status in command.only_statuses or []]
        cleared = order.clear_missing_info_state(*statuses)
        if cleared:
            repo.add(order)
            logger.info("missing_info_cleared", order_number=order.order_number)
        return cleared

    @handle(OverrideInsurance)
    def override_insurance(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.region(RegionKind.INSURANCE) is None:
            logger.warning("insurance_override_skipped", order_number=order.order_number, reason="no insurance milestone")
            return
        order.insurance_override()
        repo.add(order)
        logger.info("insurance_overridden", order_number=order.order_number)
