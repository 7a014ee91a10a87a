"""Order aggregate (CQRS) — the composite fulfillment state machine.

An order is not a single linear FSM. It is composed of:

    * up to seven independent milestone regions (transfer or new
      prescription intake, insurance, payment, stock check, delivery,
      refill authorization), each moving freely through ``MilestoneStatus``
    * one missing-info overlay that suspends automatic progress
    * a sleep schedule of independent re-examination timers

Completion uses AND semantics over the regions relevant to the order's
payment option and fill type. Suspension uses OR semantics: while the
overlay is present every ``is_processing_*`` and ``is_pending_*``
predicate is false, whatever the regions say.

Each region is persisted as a camelCase JSON document and read back through
its model in ``fulfillment.order.milestones``; a changed region is written
back whole.
"""

from datetime import UTC, datetime
from functools import wraps

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from fulfillment.domain import TIMED_SLEEP_WINDOW, fulfillment
from fulfillment.order.events import (
    InsuranceOverridden,
    InsuranceSupplied,
    MilestoneStatusChanged,
    MissingInfoCleared,
    OrderInitialized,
    OrderSuspended,
    PaymentAuthorized,
    PendingActionTaken,
    SleepRemoved,
    SleepScheduled,
)
from fulfillment.order.milestones import (
    DeliveryMilestone,
    InsuranceMilestone,
    NewRxMilestone,
    PaymentMilestone,
    RefillAuthMilestone,
    RegionBase,
    StockCheckMilestone,
    TransferMilestone,
)
from fulfillment.order.missing_info import MissingInfoState
from fulfillment.order.sleep import SleepStatus
from fulfillment.order.vocabulary import (
    DrugType,
    FillType,
    InsuranceExceptionType,
    MilestoneStatus,
    MissingField,
    MissingStatus,
    NotificationType,
    OriginType,
    PaymentOption,
    RefillDeniedType,
    RegionKind,
    ShippingOption,
    SleepState,
    YesNo,
    coerce,
)
from fulfillment.utils.dates import as_utc

# region kind -> (attribute, model)
_REGIONS = {
    RegionKind.TRANSFER: ("transfer_milestone", TransferMilestone),
    RegionKind.NEW_RX: ("new_rx_milestone", NewRxMilestone),
    RegionKind.INSURANCE: ("insurance_milestone", InsuranceMilestone),
    RegionKind.PAYMENT: ("payment_milestone", PaymentMilestone),
    RegionKind.STOCK_CHECK: ("stock_check_milestone", StockCheckMilestone),
    RegionKind.DELIVERY: ("delivery_milestone", DeliveryMilestone),
    RegionKind.REFILL_AUTH: ("refill_auth_milestone", RefillAuthMilestone),
}

_INTAKE_REGIONS = (RegionKind.TRANSFER, RegionKind.NEW_RX)

_PENDING_APPROVAL_STATUSES = {
    MilestoneStatus.PENDING_APPROVAL,
    MilestoneStatus.PENDING_APPROVAL_AND_SIGNUP,
}

# Overlays that a successful payment authorization resolves.
_PAYMENT_OVERLAYS = (
    MissingStatus.PAYMENT_ERROR,
    MissingStatus.COPAY_INCREASED,
    MissingStatus.COPAY_DECREASED,
    MissingStatus.ORIGINAL_COPAY_NOTAVAILABLE,
)

# Overlays that supplying insurance resolves.
_INSURANCE_OVERLAYS = (
    MissingStatus.MISSING_INSURANCE,
    MissingStatus.INSURANCE_EXPIRED,
    MissingStatus.INVALID_INSURANCE,
)

_PAYMENT_APPROVAL_SLEEPS = (
    SleepState.PAYMENT_APPROVAL,
    SleepState.PAYMENT_APPROVAL_UNTIL_FREE_TRIAL_DELIVERED,
)


def _suspendable(predicate):
    """Force ``predicate`` to False while the missing-info overlay is set."""

    @wraps(predicate)
    def wrapper(self) -> bool:
        if self.is_suspended():
            return False
        return predicate(self)

    return wrapper


@fulfillment.entity(part_of="Order")
class NotificationStat:
    type = String(required=True, max_length=50, choices=NotificationType)
    sent_date = DateTime(required=True)


@fulfillment.aggregate
class Order:
    order_number = String(required=True, max_length=20)
    rx_id = Identifier()
    fill_type = String(max_length=20, choices=FillType)
    payment_option = String(max_length=30, choices=PaymentOption)
    delivery_option = String(max_length=30, choices=ShippingOption)
    drug_type = String(max_length=30, choices=DrugType)
    transfer_all = Boolean(default=False)
    rerun_insurance = Boolean(default=False)
    archived = Boolean(default=False)
    high_alert = Boolean(default=False)
    expedited_shipping = Boolean(default=False)
    should_contact_customer_for_payment_approval = Boolean(default=False)
    fax_queue_id = String(max_length=100)

    transfer_milestone = Text()  # JSON region documents
    new_rx_milestone = Text()
    insurance_milestone = Text()
    payment_milestone = Text()
    stock_check_milestone = Text()
    delivery_milestone = Text()
    refill_auth_milestone = Text()

    sleep_statuses = HasMany(SleepStatus)
    missing_info_state = ValueObject(MissingInfoState)
    notification_stats = HasMany(NotificationStat)

    fax_sent_count = Integer(default=0)
    called_md_count = Integer(default=0)
    escript_sent_count = Integer(default=0)

    order_placed_date = DateTime()
    created_date = DateTime()
    updated_date = DateTime()

    address_id = Identifier()
    payment_id = Identifier()
    origin_pharmacy_id = Identifier()
    partner_pharmacy_id = Identifier()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def initialize(cls, order_number: str, origin_type: OriginType | str) -> "Order":
        """Create an order whose every starting region is at NOT_INITIATED.

        Transfers get a transfer region (and ``transfer_all``); prescriptions
        that come straight from a doctor get a new-prescription region.
        """
        origin = coerce(OriginType, origin_type, "origin_type")
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            fill_type=FillType.FIRST_FILL.value,
            created_date=now,
            updated_date=now,
        )

        if origin == OriginType.TRANSFER:
            order.store_region(TransferMilestone.starting_at(MilestoneStatus.NOT_INITIATED, days_of_supply=30))
            order.transfer_all = True
        else:
            order.store_region(NewRxMilestone.starting_at(MilestoneStatus.NOT_INITIATED, medication_quantity=30))
        order.initialize_milestones()

        order.raise_(
            OrderInitialized(
                order_id=str(order.id),
                order_number=order_number,
                origin_type=origin.value,
                initialized_at=now,
            )
        )
        return order

    def initialize_milestones(self) -> None:
        """Seed the insurance, payment, stock check and delivery regions."""
        self.store_region(InsuranceMilestone.starting_at(MilestoneStatus.NOT_INITIATED, send_copay_confirm_email=True))
        self.store_region(PaymentMilestone.starting_at(MilestoneStatus.NOT_INITIATED))
        self.store_region(StockCheckMilestone.starting_at(MilestoneStatus.NOT_INITIATED))
        self.store_region(DeliveryMilestone.starting_at(MilestoneStatus.NOT_INITIATED))

    def _touch(self) -> datetime:
        now = datetime.now(UTC)
        self.updated_date = now
        return now

    # -------------------------------------------------------------------
    # Regions
    # -------------------------------------------------------------------
    def region(self, kind: RegionKind | str):
        """The region's current state, or None when the order has no such region.

        The returned model is a copy; write changes back with ``store_region``.
        """
        attribute, model = _REGIONS[coerce(RegionKind, kind, "region")]
        document = getattr(self, attribute)
        return model.model_validate_json(document) if document else None

    def regions(self) -> list[RegionBase]:
        regions = (self.region(kind) for kind in _REGIONS)
        return [region for region in regions if region is not None]

    def store_region(self, region: RegionBase) -> None:
        """Write ``region`` back whole, replacing any region of the same kind."""
        attribute, _ = _REGIONS[RegionKind(region.kind)]
        setattr(self, attribute, region.model_dump_json(by_alias=True))

    def update_milestone_status(self, kind: RegionKind | str, status: MilestoneStatus | str) -> None:
        """Move one region to ``status``; any status may follow any other."""
        region = self.region(kind)
        if region is None:
            raise ValidationError({"region": [f"Order has no {RegionKind(kind).value} milestone"]})
        self._set_region_status(region, status)

    def _set_region_status(self, region: RegionBase, status: MilestoneStatus | str) -> None:
        previous = region.status
        now = self._touch()
        region.set_status(status, at=now)
        self.store_region(region)
        self.raise_(
            MilestoneStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                region=region.kind,
                previous_status=previous.value if previous else None,
                new_status=region.status.value,
                changed_at=now,
            )
        )

    def _status_of(self, kind: RegionKind) -> MilestoneStatus | None:
        region = self.region(kind)
        return region.status if region else None

    def transfer_status(self) -> MilestoneStatus | None:
        return self._status_of(RegionKind.TRANSFER)

    def new_prescription_status(self) -> MilestoneStatus | None:
        return self._status_of(RegionKind.NEW_RX)

    def insurance_status(self) -> MilestoneStatus | None:
        return self._status_of(RegionKind.INSURANCE)

    def payment_status(self) -> MilestoneStatus | None:
        return self._status_of(RegionKind.PAYMENT)

    def stock_check_status(self) -> MilestoneStatus | None:
        return self._status_of(RegionKind.STOCK_CHECK)

    def delivery_status(self) -> MilestoneStatus | None:
        return self._status_of(RegionKind.DELIVERY)

    def refill_auth_status(self) -> MilestoneStatus | None:
        return self._status_of(RegionKind.REFILL_AUTH)

    def _is_region_processing(self, kind: RegionKind) -> bool:
        region = self.region(kind)
        return region is not None and region.is_processing

    # -------------------------------------------------------------------
    # Fill type / payment option
    # -------------------------------------------------------------------
    def is_first_fill(self) -> bool:
        return self.fill_type == FillType.FIRST_FILL.value

    def is_refill(self) -> bool:
        return self.fill_type == FillType.REFILL.value

    def is_pay_out_of_pocket(self) -> bool:
        return self.payment_option == PaymentOption.PAY_DIRECTLY.value

    def is_pay_through_insurance(self) -> bool:
        return self.payment_option == PaymentOption.PAY_THROUGH_INSURANCE.value

    def set_payment_option(self, out_of_pocket: bool) -> None:
        option = PaymentOption.PAY_DIRECTLY if out_of_pocket else PaymentOption.PAY_THROUGH_INSURANCE
        self.payment_option = option.value

    def set_insurance_type(self, govt_sponsored: bool) -> None:
        region = self.region(RegionKind.INSURANCE)
        if region is None:
            return
        region.is_federal_sponsored_insurance = YesNo.YES if govt_sponsored else YesNo.NO
        self.store_region(region)

    # -------------------------------------------------------------------
    # Processing predicates (suspended by the overlay)
    # -------------------------------------------------------------------
    @_suspendable
    def is_processing_transfer(self) -> bool:
        return self._is_region_processing(RegionKind.TRANSFER)

    @_suspendable
    def is_processing_new_prescription(self) -> bool:
        return self._is_region_processing(RegionKind.NEW_RX)

    @_suspendable
    def is_processing_insurance(self) -> bool:
        if self.is_pay_out_of_pocket():
            return False
        return self._is_region_processing(RegionKind.INSURANCE)

    @_suspendable
    def is_processing_insurance_complete(self) -> bool:
        if self.is_pay_out_of_pocket():
            return False
        return self.insurance_status() == MilestoneStatus.COMPLETED

    @_suspendable
    def is_processing_cash(self) -> bool:
        if not self.is_pay_out_of_pocket():
            return False
        return self._is_region_processing(RegionKind.PAYMENT)

    @_suspendable
    def is_processing_payment(self) -> bool:
        status = self.payment_status()
        return status is not None and status != MilestoneStatus.COMPLETED

    @_suspendable
    def is_processing_stock_check(self) -> bool:
        return self._is_region_processing(RegionKind.STOCK_CHECK)

    @_suspendable
    def is_processing_delivery(self) -> bool:
        return self._is_region_processing(RegionKind.DELIVERY)

    @_suspendable
    def is_processing_refill_auth(self) -> bool:
        return self._is_region_processing(RegionKind.REFILL_AUTH)

    # -------------------------------------------------------------------
    # Pending predicates (suspended by the overlay)
    # -------------------------------------------------------------------
    def _awaits_payment_approval(self) -> bool:
        status = self.payment_status()
        if status == MilestoneStatus.PENDING_APPROVAL:
            return True
        return (
            status == MilestoneStatus.PENDING_APPROVAL_AFTER_PRICE_INSPECTION
            and not self.should_contact_customer_for_payment_approval
        )

    @_suspendable
    def is_pending_payment_approval(self) -> bool:
        return self._awaits_payment_approval()

    @_suspendable
    def is_pending_payment_approval_and_signup(self) -> bool:
        return self.payment_status() == MilestoneStatus.PENDING_APPROVAL_AND_SIGNUP

    @_suspendable
    def is_pending_approval_until_free_trial(self) -> bool:
        return self.payment_status() == MilestoneStatus.PENDING_APPROVAL_UNTIL_FREE_TRIAL

    @_suspendable
    def is_pending_approval_until_price_inspection_free_trial(self) -> bool:
        return self.payment_status() == MilestoneStatus.PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_FREE_TRIAL

    @_suspendable
    def is_pending_approval_until_price_inspection_no_free_trial(self) -> bool:
        return self.payment_status() == MilestoneStatus.PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_NO_FREE_TRIAL

    @_suspendable
    def is_pending_transfer(self) -> bool:
        """Passed the welcome call but not yet transferred."""
        return self.transfer_status() in (MilestoneStatus.NOT_INITIATED, MilestoneStatus.CALL_COMPLETED)

    # -------------------------------------------------------------------
    # Raw region state
    # -------------------------------------------------------------------
    def is_not_due(self) -> bool:
        if self.is_pay_out_of_pocket():
            return False
        return self.insurance_status() == MilestoneStatus.REFILL_NOT_DUE

    def is_cash_price_identified(self) -> bool:
        return self.payment_status() == MilestoneStatus.CASH_PRICE_IDENTIFIED

    def is_payment_authorized(self) -> bool:
        return self.payment_status() == MilestoneStatus.PAYMENT_AUTHORIZED

    def is_payment_complete(self) -> bool:
        return self.payment_status() == MilestoneStatus.COMPLETED

    def is_invoice_pending(self) -> bool:
        return self.payment_status() in (
            MilestoneStatus.PAYMENT_COMPLETE_INVOICE_PENDING,
            MilestoneStatus.PAYMENT_INCOMPLETE_INVOICE_PENDING,
        )

    def is_payment_incomplete_offline(self) -> bool:
        return self.payment_status() == MilestoneStatus.PAYMENT_INCOMPLETE_OFFLINE

    def is_promo_discount_applied(self) -> bool:
        payment = self.region(RegionKind.PAYMENT)
        return payment is not None and payment.is_promo_discount_applied

    def is_shipped(self) -> bool:
        return self.delivery_status() in (MilestoneStatus.SHIPPED, MilestoneStatus.WAITING_LABEL_SCAN)

    def is_shipping_label_generated(self) -> bool:
        return self.is_shipped() or self.delivery_status() == MilestoneStatus.SHIPPING_LABEL_GENERATED

    def is_delivered(self) -> bool:
        delivery = self.region(RegionKind.DELIVERY)
        return delivery is not None and delivery.delivery_confirmed

    def is_in_transit(self) -> bool:
        delivery = self.region(RegionKind.DELIVERY)
        return delivery is not None and delivery.delivery_status == MilestoneStatus.IN_TRANSIT.value

    def is_transfer_back(self) -> bool:
        return self.transfer_status() == MilestoneStatus.TRANSFER_BACK

    def is_transfer_back_complete(self) -> bool:
        return self.transfer_status() == MilestoneStatus.TRANSFER_BACK_COMPLETED

    def is_transfer_out(self) -> bool:
        return self.transfer_status() == MilestoneStatus.TRANSFER_OUT

    def is_transfer_out_complete(self) -> bool:
        return self.transfer_status() == MilestoneStatus.TRANSFER_OUT_COMPLETED

    def is_transfer_request_sent(self) -> bool:
        return self.transfer_status() == MilestoneStatus.TRANSFER_REQUEST_SENT

    def is_transfer_initiated(self) -> bool:
        return self.transfer_status() == MilestoneStatus.TRANSFER_INITIATED

    def is_order_verification_initiated(self) -> bool:
        return self.new_prescription_status() == MilestoneStatus.VERIFICATION_INITIATED

    def is_transfer_in_process(self) -> bool:
        return self.transfer_status() not in (
            MilestoneStatus.COMPLETED,
            MilestoneStatus.CALL_COMPLETED,
            MilestoneStatus.NOT_INITIATED,
        )

    def require_doctor_approval(self) -> bool:
        return self.transfer_status() in (
            MilestoneStatus.ZERO_REFILLS,
            MilestoneStatus.ESCRIPT_REQUEST_SENT,
            MilestoneStatus.FAX_SENT,
        )

    def require_doctor_approval_for_new_prescription(self) -> bool:
        return self.new_prescription_status() in (MilestoneStatus.FAX_SENT, MilestoneStatus.ESCRIPT_REQUEST_SENT)

    def require_prior_auth(self) -> bool:
        return self.insurance_status() in (MilestoneStatus.PRIOR_AUTH, MilestoneStatus.FAX_SENT)

    def is_in_reverse_insurance_process(self) -> bool:
        return self.insurance_status() == MilestoneStatus.REVERSE_INSURANCE

    def is_insurance_reversed(self) -> bool:
        return self.insurance_status() == MilestoneStatus.INSURANCE_REVERSED

    def earliest_refill_date(self) -> datetime | None:
        insurance = self.region(RegionKind.INSURANCE)
        return insurance.earliest_refill_date if insurance else None

    def payment_auth_token(self) -> str | None:
        """Authorization token, looked up on the region that matches the payment option first."""
        insurance = self.region(RegionKind.INSURANCE)
        payment = self.region(RegionKind.PAYMENT)
        insurance_token = insurance.milestone.parameters.payment_authorization_token if insurance else None
        cash_token = payment.milestone.parameters.payment_authorization_token if payment else None
        if self.is_pay_through_insurance():
            return insurance_token or cash_token
        return cash_token or insurance_token

    # -------------------------------------------------------------------
    # Missing-info overlay
    # -------------------------------------------------------------------
    def is_suspended(self) -> bool:
        return self.missing_info_state is not None

    def missing_status(self) -> MissingStatus | None:
        if self.missing_info_state is None:
            return None
        return MissingStatus(self.missing_info_state.missing_status)

    def _has_missing_status(self, *statuses: MissingStatus) -> bool:
        return self.missing_info_state is not None and self.missing_info_state.has_status(*statuses)

    def has_delivery_failed(self) -> bool:
        return self._has_missing_status(MissingStatus.DELIVERY_FAILED)

    def has_delivery_returned(self) -> bool:
        return self._has_missing_status(MissingStatus.DELIVERY_RETURNED)

    def is_refills_denied(self) -> bool:
        return self._has_missing_status(MissingStatus.REFILLS_DENIED)

    def is_prior_auth_denied(self) -> bool:
        return self._has_missing_status(MissingStatus.PRIOR_AUTH_DENIED)

    def is_step_therapy_denied(self) -> bool:
        return self._has_missing_status(MissingStatus.STEP_THERAPY_DENIED)

    def refill_denied_type(self) -> RefillDeniedType | None:
        if not self.is_refills_denied() or not self.missing_info_state.refill_denied_type:
            return None
        return RefillDeniedType(self.missing_info_state.refill_denied_type)

    def has_payment_error(self) -> bool:
        return self._has_missing_status(MissingStatus.PAYMENT_ERROR)

    def is_invalid_insurance(self) -> bool:
        return self._has_missing_status(MissingStatus.INVALID_INSURANCE, MissingStatus.INSURANCE_EXPIRED)

    def is_stock_exception(self) -> bool:
        return self._has_missing_status(MissingStatus.STOCK_EXCEPTION)

    def set_missing_info_state(
        self,
        status: MissingStatus | str,
        missing_fields: list[MissingField | str] | None = None,
        comment: str = "",
        insurance_exception_type: InsuranceExceptionType | str | None = None,
        refill_denied_type: RefillDeniedType | str | None = None,
    ) -> None:
        """Suspend the order, replacing any overlay already present."""
        missing_status = coerce(MissingStatus, status, "missing_status")
        fields = [coerce(MissingField, field, "missing_fields").value for field in missing_fields or []]
        exception_type = (
            coerce(InsuranceExceptionType, insurance_exception_type, "insurance_exception_type").value
            if insurance_exception_type
            else None
        )
        denied_type = (
            coerce(RefillDeniedType, refill_denied_type, "refill_denied_type").value if refill_denied_type else None
        )
        self.missing_info_state = MissingInfoState(
            missing_status=missing_status.value,
            missing_fields=fields,
            comment=comment,
            insurance_exception_type=exception_type,
            refill_denied_type=denied_type,
        )
        now = self._touch()
        self.raise_(
            OrderSuspended(
                order_id=str(self.id),
                order_number=self.order_number,
                missing_status=missing_status.value,
                suspended_at=now,
            )
        )

    def clear_missing_info_state(self, *statuses: MissingStatus) -> bool:
        """Lift the overlay; with ``statuses`` given, only if it carries one of them."""
        if self.missing_info_state is None:
            return False
        if statuses and not self._has_missing_status(*statuses):
            return False

        cleared = self.missing_info_state.missing_status
        self.missing_info_state = None
        now = self._touch()
        self.raise_(
            MissingInfoCleared(
                order_id=str(self.id),
                order_number=self.order_number,
                missing_status=cleared,
                cleared_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Compound transitions
    # -------------------------------------------------------------------
    def _intake_regions(self) -> list[TransferMilestone | NewRxMilestone]:
        regions = (self.region(kind) for kind in _INTAKE_REGIONS)
        return [region for region in regions if region is not None]

    def move_to_scrub_and_route(self) -> None:
        """Advance an intake region still at NOT_INITIATED to CALL_COMPLETED."""
        for region in self._intake_regions():
            if region.status == MilestoneStatus.NOT_INITIATED:
                self._set_region_status(region, MilestoneStatus.CALL_COMPLETED)

    def save_pending_prior_status(self) -> None:
        """Remember each intake region's status before it is forced to PENDING_ACTION_TAKEN."""
        for region in self._intake_regions():
            if region.status != MilestoneStatus.PENDING_ACTION_TAKEN:
                region.pending_prior_status = region.status
                self.store_region(region)

    def pending_action_taken(self) -> None:
        """Resolve the order's exception and hand it back to automatic processing."""
        now = datetime.now(UTC)
        for region in self._intake_regions():
            self._set_region_status(region, MilestoneStatus.PENDING_ACTION_TAKEN)
            self.raise_(
                PendingActionTaken(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    region=region.kind,
                    taken_at=now,
                )
            )

        self.clear_missing_info_state()
        self.remove_sleep_status(SleepState.CALL_PATIENT)

    def insurance_override(self) -> None:
        """Bypass insurance verification so the order can ship without it."""
        insurance = self.region(RegionKind.INSURANCE)
        if insurance is None:
            return
        insurance.send_to_pp = False
        self._set_region_status(insurance, MilestoneStatus.INSURANCE_OVERRIDE)
        self.raise_(
            InsuranceOverridden(
                order_id=str(self.id),
                order_number=self.order_number,
                overridden_at=self.updated_date,
            )
        )

    def insurance_supplied(self) -> None:
        """Resume routing once the prescription has insurance to bill.

        Lifts an insurance overlay (and the call-patient sleep it set), backs
        the payment region out of cash pricing, switches the order to
        insurance billing and, on a first fill, moves it to scrub and route.
        """
        if self.clear_missing_info_state(*_INSURANCE_OVERLAYS):
            self.remove_sleep_status(SleepState.CALL_PATIENT)

        payment = self.region(RegionKind.PAYMENT)
        if payment is not None and payment.status == MilestoneStatus.CASH_PRICE_CHECK:
            self._set_region_status(payment, MilestoneStatus.NOT_INITIATED)

        self.set_payment_option(out_of_pocket=False)
        if self.is_first_fill():
            self.move_to_scrub_and_route()

        self.raise_(
            InsuranceSupplied(
                order_id=str(self.id),
                order_number=self.order_number,
                supplied_at=self._touch(),
            )
        )

    def authorize_payment(self) -> bool:
        """Record the patient's approval of a pending charge.

        Returns False, leaving the order untouched, when the payment region
        is not waiting for approval.
        """
        if not self._awaits_payment_approval() and self.payment_status() not in _PENDING_APPROVAL_STATUSES:
            return False

        self._set_region_status(self.region(RegionKind.PAYMENT), MilestoneStatus.PAYMENT_AUTHORIZED)
        self.clear_missing_info_state(*_PAYMENT_OVERLAYS)
        for state in _PAYMENT_APPROVAL_SLEEPS:
            self.remove_sleep_status(state)
        self.raise_(
            PaymentAuthorized(
                order_id=str(self.id),
                order_number=self.order_number,
                authorized_at=self.updated_date,
            )
        )
        return True

    def is_fulfillment_complete(self) -> bool:
        """True once every region relevant to this order has finished."""
        if self.is_suspended():
            return False

        relevant = []
        for kind in _REGIONS:
            region = self.region(kind)
            if region is None:
                continue
            if kind == RegionKind.INSURANCE and self.is_pay_out_of_pocket():
                continue
            if kind == RegionKind.REFILL_AUTH and not self.is_refill():
                continue
            relevant.append(region)

        return bool(relevant) and all(region.is_complete for region in relevant)

    # -------------------------------------------------------------------
    # Sleep schedule
    # -------------------------------------------------------------------
    def get_sleep_status(self, state: SleepState | str) -> SleepStatus | None:
        state = coerce(SleepState, state, "state")
        return next((entry for entry in self.sleep_statuses or [] if entry.state == state.value), None)

    def update_sleep_state(self, state: SleepState | str) -> SleepStatus:
        return self.update_sleep_state_with_start_date(state, datetime.now(UTC))

    def update_sleep_state_with_start_date(self, state: SleepState | str, start: datetime) -> SleepStatus:
        """Schedule ``state`` from ``start``; timed sleeps stop 24 hours from now."""
        state = coerce(SleepState, state, "state")
        stop = None
        if state == SleepState.TIMED_SLEEP:
            stop = datetime.now(UTC) + TIMED_SLEEP_WINDOW
        return self.update_sleep_state_with_start_and_stop_date(state, start, stop)

    def update_timed_sleep_state(self, wakeup_at: datetime) -> SleepStatus:
        # wakeup_at only becomes the start date; the stop date stays at now + 24h.
        return self.update_sleep_state_with_start_date(SleepState.TIMED_SLEEP, wakeup_at)

    def update_sleep_state_with_start_and_stop_date(
        self,
        state: SleepState | str,
        start: datetime | None,
        stop: datetime | None,
    ) -> SleepStatus:
        state = coerce(SleepState, state, "state")
        entry = self.get_sleep_status(state)
        if entry is None:
            entry = SleepStatus(
                state=state.value,
                sleep_start_date=as_utc(start),
                sleep_stop_date=as_utc(stop),
                reset_needed=state != SleepState.TIMED_SLEEP,
            )
            self.add_sleep_statuses(entry)
        else:
            entry.rearm(start, stop)

        self._touch()
        self.raise_(
            SleepScheduled(
                order_id=str(self.id),
                order_number=self.order_number,
                state=state.value,
                sleep_start_date=entry.sleep_start_date,
                sleep_stop_date=entry.sleep_stop_date,
                reset_needed=entry.reset_needed,
            )
        )
        return entry

    def remove_sleep_status(self, state: SleepState | str) -> None:
        entry = self.get_sleep_status(state)
        if entry is None:
            return
        self.remove_sleep_statuses(entry)
        self._touch()
        self.raise_(SleepRemoved(order_id=str(self.id), order_number=self.order_number, state=entry.state))

    def due_sleep_statuses(self, now: datetime | None = None) -> list[SleepStatus]:
        """Entries the poller should act on: stop date passed or reset needed."""
        now = as_utc(now) or datetime.now(UTC)
        return [entry for entry in self.sleep_statuses or [] if entry.is_due(now)]

    def acknowledge_sleep_reset(self, state: SleepState | str) -> SleepStatus | None:
        entry = self.get_sleep_status(state)
        if entry is not None:
            entry.acknowledge_reset()
        return entry

    # -------------------------------------------------------------------
    # References
    # -------------------------------------------------------------------
    def add_origin_pharmacy(self, pharmacy) -> None:
        self.origin_pharmacy_id = pharmacy.pharmacy_id

    def add_partner_pharmacy(self, pharmacy) -> None:
        self.partner_pharmacy_id = pharmacy.pharmacy_id

    def add_delivery_address(self, address) -> None:
        self.address_id = address.address_id

    def add_payment(self, payment) -> None:
        """Attach a payment method; it resolves a payment-error suspension."""
        self.payment_id = payment.payment_id
        if self.clear_missing_info_state(MissingStatus.PAYMENT_ERROR):
            self.remove_sleep_status(SleepState.CALL_PATIENT)

    # -------------------------------------------------------------------
    # Counters and notifications
    # -------------------------------------------------------------------
    def record_fax_sent(self) -> None:
        self.fax_sent_count += 1

    def record_md_called(self) -> None:
        self.called_md_count += 1

    def record_escript_sent(self) -> None:
        self.escript_sent_count += 1

    def record_notification(self, notification_type: NotificationType | str, at: datetime | None = None) -> None:
        self.add_notification_stats(
            NotificationStat(
                type=coerce(NotificationType, notification_type, "notification_type").value,
                sent_date=as_utc(at) or datetime.now(UTC),
            )
        )
