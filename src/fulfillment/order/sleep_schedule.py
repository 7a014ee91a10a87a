"""Sleep schedule commands — arm, remove and acknowledge re-examination timers."""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order
from fulfillment.order.vocabulary import SleepState

logger = structlog.get_logger(__name__)


@fulfillment.command(part_of="Order")
class ScheduleSleep:
    """Put an order to sleep in ``state``.

    Without dates the sleep starts now. A stop date is only stored when it is
    given explicitly, except for timed sleeps, which stop 24 hours from now.
    """

    order_id = Identifier(required=True)
    state = String(required=True, max_length=50, choices=SleepState)
    start = DateTime()
    stop = DateTime()


@fulfillment.command(part_of="Order")
class ScheduleTimedSleep:
    order_id = Identifier(required=True)
    wakeup_at = DateTime(required=True)


@fulfillment.command(part_of="Order")
class RemoveSleep:
    order_id = Identifier(required=True)
    state = String(required=True, max_length=50, choices=SleepState)


@fulfillment.command(part_of="Order")
class AcknowledgeSleepReset:
    """The poller has re-examined the order for ``state``."""

    order_id = Identifier(required=True)
    state = String(required=True, max_length=50, choices=SleepState)


@fulfillment.command_handler(part_of=Order)
class SleepScheduleHandler:
    @handle(ScheduleSleep)
    def schedule_sleep(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if command.stop is not None:
            entry = order.update_sleep_state_with_start_and_stop_date(command.state, command.start, command.stop)
        elif command.start is not None:
            entry = order.update_sleep_state_with_start_date(command.state, command.start)
        else:
            entry = order.update_sleep_state(command.state)
        repo.add(order)
        logger.info("sleep_scheduled", order_number=order.order_number, state=command.state)
        return entry

    @handle(ScheduleTimedSleep)
    def schedule_timed_sleep(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        entry = order.update_timed_sleep_state(command.wakeup_at)
        repo.add(order)
        logger.info(
            "timed_sleep_scheduled",
            order_number=order.order_number,
            wakeup_at=command.wakeup_at.isoformat(),
            sleep_stop_date=entry.sleep_stop_date.isoformat(),
        )
        return entry

    @handle(RemoveSleep)
    def remove_sleep(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.remove_sleep_status(command.state)
        repo.add(order)
        logger.info("sleep_removed", order_number=order.order_number, state=command.state)

    @handle(AcknowledgeSleepReset)
    def acknowledge_sleep_reset(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        entry = order.acknowledge_sleep_reset(command.state)
        if entry is None:
            logger.warning("sleep_reset_unknown_state", order_number=order.order_number, state=command.state)
            return None
        repo.add(order)
        return entry
