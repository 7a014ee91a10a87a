"""Order domain events — immutable facts about fulfillment state changes.

All events are past tense, versioned, and carry the order id and number so
downstream pollers and notifiers can act without reloading the order.
"""

from protean.fields import Boolean, DateTime, Identifier, String

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Order")
class OrderInitialized:
    """A new order was seeded with its starting milestones."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    origin_type = String(required=True)
    initialized_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class MilestoneStatusChanged:
    """A milestone region moved to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    region = String(required=True)
    previous_status = String()
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderSuspended:
    """A missing-info overlay was placed on the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    missing_status = String(required=True)
    suspended_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class MissingInfoCleared:
    """The missing-info overlay was removed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    missing_status = String()
    cleared_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class PendingActionTaken:
    """An operator or automated step resolved the order's exception."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    region = String(required=True)
    taken_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class InsuranceOverridden:
    """Insurance verification was bypassed so the order can ship."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    overridden_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class InsuranceSupplied:
    """Insurance arrived for the order's prescription and routing resumed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    supplied_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class SleepScheduled:
    """A sleep entry was created or re-armed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    state = String(required=True)
    sleep_start_date = DateTime()
    sleep_stop_date = DateTime()
    reset_needed = Boolean(default=False)


@fulfillment.event(part_of="Order")
class SleepRemoved:
    """A sleep entry was removed from the schedule."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    state = String(required=True)


@fulfillment.event(part_of="Order")
class PaymentAuthorized:
    """The patient approved the charge for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    authorized_at = DateTime(required=True)
