"""Prescription aggregate — the patient's standing prescription and its current order.

A prescription keeps the identifiers of its manager (the user who manages
it), patient, doctor, insurance and the order currently being fulfilled.
Predicates that read through to those records take them as arguments; the
``ReferenceResolver`` loads them.
"""

from datetime import UTC, datetime, time, timedelta

from protean.fields import Boolean, DateTime, Dict, Identifier, Integer, String

from fulfillment.domain import fulfillment
from fulfillment.order.vocabulary import MissingStatus, OriginType, coerce
from fulfillment.utils.dates import as_utc

_TRANSFER_ALL_NAMES = {"Transfer all", "Transfer All", "TransferAll"}

_INSURANCE_EXCEPTIONS = (
    MissingStatus.INSURANCE_EXPIRED,
    MissingStatus.INVALID_INSURANCE,
    MissingStatus.NOT_COVERED,
    MissingStatus.MISSING_INSURANCE,
)

# Share of the days of supply that must elapse before a refill is allowed.
_REFILL_THRESHOLD = 0.8


@fulfillment.aggregate
class Prescription:
    name = String(max_length=200, default="")
    number = String(max_length=50)
    form = String(max_length=100)
    strength = String(max_length=100)
    sig = String(max_length=500)
    origin_type = String(max_length=30, choices=OriginType)
    medication_quantity = Integer()
    days_of_supply = Integer(default=0)
    archived = Boolean(default=False)
    suspended = Boolean(default=False)
    pending = Boolean(default=False)
    pending_since_date = DateTime()
    schedule_date = DateTime()
    last_fill_date = DateTime()
    refills_remaining = Integer(default=-1)
    medication_price = String(max_length=20, default="0")
    previous_medication_price = String(max_length=20, default="-1")
    attributes = Dict()
    updated_date = DateTime()

    manager_id = Identifier()
    patient_id = Identifier()
    doctor_id = Identifier()
    insurance_id = Identifier()
    current_order_id = Identifier()

    @classmethod
    def initialize(
        cls,
        name: str,
        origin_type: OriginType | str,
        schedule_date: datetime | None = None,
    ) -> "Prescription":
        return cls(
            name=name,
            origin_type=coerce(OriginType, origin_type, "origin_type").value,
            schedule_date=as_utc(schedule_date),
        )

    # -------------------------------------------------------------------
    # Relations
    # -------------------------------------------------------------------
    def add_order(self, order) -> None:
        """Make ``order`` the prescription's current order."""
        self.current_order_id = str(order.id)
        order.rx_id = str(self.id)

    def add_patient(self, patient) -> None:
        self.patient_id = patient.patient_id

    def add_doctor(self, doctor) -> None:
        self.doctor_id = doctor.doctor_id

    def add_manager(self, user) -> None:
        self.manager_id = user.user_id

    def add_insurance(self, insurance, order=None) -> None:
        """Attach insurance and resume anything that was waiting on it.

        The prescription is no longer pending. When the current order is
        given it switches to insurance billing and resumes routing.
        """
        self.insurance_id = insurance.insurance_id
        if self.pending:
            self.pending = False
            self.pending_since_date = None
        self.updated_date = datetime.now(UTC)
        if order is not None:
            order.insurance_supplied()

    # -------------------------------------------------------------------
    # Current-order setters
    # -------------------------------------------------------------------
    def set_payment_option(self, order, out_of_pocket: bool) -> None:
        if order is not None:
            order.set_payment_option(out_of_pocket)

    def set_insurance_type(self, order, govt_sponsored: bool) -> None:
        if order is not None:
            order.set_insurance_type(govt_sponsored)

    def set_missing_info(self, order, status: MissingStatus | str) -> None:
        if order is not None:
            order.set_missing_info_state(status)

    # -------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------
    def is_name_transfer_all(self) -> bool:
        return self.name in _TRANSFER_ALL_NAMES

    def full_rx_name(self) -> str:
        if not self.name and self.origin_type == OriginType.FROM_DOCTOR_DIRECT.value:
            return "New Prescription"
        if not self.name and self.origin_type == OriginType.FROM_DOCTOR_PAPER.value:
            return "Paper Prescription"
        parts = [self.name, self.form, self.strength]
        return " ".join(part for part in parts if part).upper()

    def has_valid_insurance(self, insurance) -> bool:
        return insurance is not None and insurance.is_usable()

    def is_scheduled_for_later(self, now: datetime | None = None) -> bool:
        """Scheduled for any day after today (UTC)."""
        if self.schedule_date is None:
            return False
        now = as_utc(now) or datetime.now(UTC)
        end_of_today = datetime.combine(now.date(), time(23, 59, 59), tzinfo=UTC)
        return as_utc(self.schedule_date) > end_of_today

    def earliest_refill_date(self, order=None) -> datetime | None:
        """Insurance-reported date, else the last fill plus 80% of the days of supply."""
        reported = order.earliest_refill_date() if order is not None else None
        if reported is None and self.last_fill_date is not None:
            return as_utc(self.last_fill_date) + timedelta(days=_REFILL_THRESHOLD * (self.days_of_supply or 0))
        return reported

    def insurance_missing_or_exception(self, order, insurance) -> bool:
        if order is None or not order.is_pay_through_insurance():
            return False
        if insurance is None:
            return True
        return order.missing_status() in _INSURANCE_EXCEPTIONS

    def is_insurance_missing(self, order) -> bool:
        if order is None:
            return False
        return order.is_pay_through_insurance() and self.insurance_id is None

    def is_rx_from_partner(self, partner: str) -> bool:
        return (self.attributes or {}).get("source") == partner

    def _is_payment_actionable(self, order) -> bool:
        if order is None or not order.is_payment_authorized():
            return False
        return not (self.is_scheduled_for_later() or self.archived or self.suspended)

    def has_payment_error(self, order) -> bool:
        return self._is_payment_actionable(order) and order.has_payment_error()

    def is_missing_payment(self, order) -> bool:
        return self._is_payment_actionable(order) and order.payment_id is None
