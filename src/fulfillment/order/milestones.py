"""Milestone regions — one independent progress tracker per fulfillment stage.

Every region embeds a ``Milestone`` by value and adds the fields its stage
needs. Status changes are never checked against a transition table: any
status may follow any other, as long as it belongs to ``MilestoneStatus``.

Processing predicates per region:

    Transfer     not COMPLETED, not a transfer back
    NewRx        not COMPLETED
    Insurance    not COMPLETED
    Payment      NOT_INITIATED (cash price not yet determined)
    StockCheck   not COMPLETED
    Delivery     not SHIPPED
    RefillAuth   neither COMPLETED nor NOT_INITIATED

A region whose status was never set is not processing. Payment-option
gating (insurance skipped for cash orders, cash pricing skipped for
insurance orders) lives on the ``Order`` aggregate.
"""

from datetime import UTC, datetime
from typing import Literal

from pydantic import Field

from fulfillment.model import DocumentModel
from fulfillment.order.vocabulary import (
    DrugType,
    MilestoneStatus,
    PaymentProvider,
    YesNo,
    coerce,
)

_TRANSFER_BACK_STATUSES = {MilestoneStatus.TRANSFER_BACK, MilestoneStatus.TRANSFER_BACK_COMPLETED}


# ---------------------------------------------------------------------------
# Shared shape
# ---------------------------------------------------------------------------
class MilestoneParameters(DocumentModel):
    """Provider-specific values attached to a milestone."""

    payment_authorization_token: str | None = None
    next_fill_date: datetime | None = None


class Milestone(DocumentModel):
    status: MilestoneStatus | None = None
    comment: str = ""
    parameters: MilestoneParameters = Field(default_factory=MilestoneParameters)
    last_processed_date: datetime | None = None


class DoctorContact(DocumentModel):
    doctor_name: str | None = None
    doctor_phone: str | None = None
    doctor_fax: str | None = None
    doctor_npi: str | None = None
    doctor_city: str | None = None


class RegionBase(DocumentModel):
    milestone: Milestone = Field(default_factory=Milestone)

    @classmethod
    def starting_at(cls, status: MilestoneStatus | str, **fields):
        """Build a region whose milestone is already at ``status``."""
        region = cls(**fields)
        region.set_status(status)
        return region

    @property
    def status(self) -> MilestoneStatus | None:
        return self.milestone.status

    def set_status(self, status: MilestoneStatus | str, at: datetime | None = None) -> None:
        """Move the milestone to ``status`` and stamp ``last_processed_date``."""
        self.milestone.status = coerce(MilestoneStatus, status, "status")
        self.milestone.last_processed_date = at or datetime.now(UTC)

    def has_status(self, *statuses: MilestoneStatus) -> bool:
        return self.milestone.status in statuses

    @property
    def is_processing(self) -> bool:
        return self.status is not None and self.status != MilestoneStatus.COMPLETED

    @property
    def is_complete(self) -> bool:
        return self.status == MilestoneStatus.COMPLETED


# ---------------------------------------------------------------------------
# Region variants
# ---------------------------------------------------------------------------
class TransferMilestone(DoctorContact, RegionBase):
    kind: Literal["transferMilestone"] = "transferMilestone"

    medication_name: str | None = None
    medication_strength: str | None = None
    medication_form: str | None = None
    sig: str | None = None
    refill_authorized_by: str | None = None
    medication_quantity: int | None = None
    days_of_supply: int | None = None
    number_of_refills_transferred: int | None = None
    drug_type: DrugType | None = None
    last_fill_date: datetime | None = None
    current_copay: str | None = None
    fax_queue_id: str | None = None
    coupon_bin: str | None = None
    coupon_pcn: str | None = None
    coupon_group: str | None = None
    coupon_member_id: str | None = None
    refill_requested_date: datetime | None = None
    pending_prior_status: MilestoneStatus | None = None
    md_approved_over_phone: bool = False
    op_sent_fax: bool = False

    @property
    def is_transfer_back(self) -> bool:
        return self.status in _TRANSFER_BACK_STATUSES

    @property
    def is_processing(self) -> bool:
        return super().is_processing and not self.is_transfer_back

    @property
    def is_complete(self) -> bool:
        return self.has_status(MilestoneStatus.COMPLETED, MilestoneStatus.TRANSFER_BACK_COMPLETED)


class NewRxMilestone(DoctorContact, RegionBase):
    kind: Literal["orderVerification"] = "orderVerification"

    medication_name: str | None = None
    medication_quantity: int | None = None
    days_of_supply: int | None = None
    refills_remaining: int | None = None
    drug_type: DrugType | None = None
    fax_queue_id: str | None = None
    pending_prior_status: MilestoneStatus | None = None
    needs_md_approval: bool = False


class InsuranceMilestone(DoctorContact, RegionBase):
    kind: Literal["insuranceVerificationMilestone"] = "insuranceVerificationMilestone"

    can_refill: YesNo | None = None
    new_rx_number: str | None = None
    fax_queue_id: str | None = None
    is_federal_sponsored_insurance: YesNo | None = None
    new_copay: str | None = None
    earliest_refill_date: datetime | None = None
    insurance_run_date: datetime | None = None
    refill_not_due_marked_due_date: datetime | None = None
    earliest_refill_pull_forward_date: datetime | None = None
    refill_not_due_count: int = 0
    refill_window: int | None = None
    send_copay_confirm_email: bool = False
    high_copay: bool = False
    high_copay_reason: str | None = None
    copay_changed: bool = False
    copay_changed_reason: str | None = None
    switched_from_cash: bool = False
    step_therapy_required: bool = False
    md_approved_over_phone: bool = False
    call_customer_for_refill_not_due: bool = False
    diagnosis_code: str | None = None
    medication_history: list[str] = Field(default_factory=list)
    associated_lab_tests: list[str] = Field(default_factory=list)
    send_to_pp: bool = False


class PaymentMilestone(RegionBase):
    kind: Literal["paymentMilestone"] = "paymentMilestone"

    payment_error: str | None = None
    error_code: str | None = None
    charge_attempt: int = 0
    applied_promo: str | None = None
    transaction_id: str | None = None
    payment_provider_used: PaymentProvider | None = None
    charge_type: str | None = None
    applied_dummy_charge: bool = False
    applied_free_trial_charge: bool = False
    marked_ship_later: bool = False
    medication_price: str | None = None
    delivery_charge: str | None = None
    final_charge: str | None = None
    applied_promo_discount: str | None = None
    payment_processed_date: datetime | None = None
    error_alert_sent_date: datetime | None = None
    last_reminder_sent_date: datetime | None = None
    payment_reminder_count: int = 0
    high_price: bool = False
    high_price_reason: str | None = None
    price_changed: bool = False
    price_changed_reason: str | None = None
    should_reverse_cash_claim: bool = False
    should_call_patient_for_signup: bool = False

    @property
    def is_processing(self) -> bool:
        return self.status == MilestoneStatus.NOT_INITIATED

    @property
    def is_promo_discount_applied(self) -> bool:
        return bool(self.applied_promo_discount) and self.applied_promo_discount not in ("0", "0.0", "0.00")


class StockCheckMilestone(RegionBase):
    kind: Literal["stockVerificationMilestone"] = "stockVerificationMilestone"

    stock_availability: bool | None = None


class DeliveryMilestone(RegionBase):
    kind: Literal["deliveryMilestone"] = "deliveryMilestone"

    shipping_rate_id: str | None = None
    tracking_number: str | None = None
    tracking_url: str | None = None
    tracking_url_for_mobile: str | None = None
    shipping_label_url: str | None = None
    shipment_transaction_id: str | None = None
    shipping_service_name: str | None = None
    generate_label_error: str | None = None
    shipping_label_cost: str | None = None
    estimated_delivery_days: int | None = None
    estimated_delivery_date: datetime | None = None
    shipped_date: datetime | None = None
    delivered_date: datetime | None = None
    delivery_confirmed: bool = False
    same_day_delivery: bool = False
    carrier_type: str | None = None
    shipment_id: str | None = None
    delivery_status: str | None = None

    @property
    def is_processing(self) -> bool:
        return self.status is not None and self.status != MilestoneStatus.SHIPPED

    @property
    def is_complete(self) -> bool:
        return self.has_status(MilestoneStatus.SHIPPED, MilestoneStatus.DELIVERED, MilestoneStatus.COMPLETED)


class RefillAuthMilestone(DoctorContact, RegionBase):
    kind: Literal["refillAuthorization"] = "refillAuthorization"

    rx_name: str | None = None
    quantity: int | None = None
    days_of_supply: int | None = None
    authorized_refills: int | None = None
    fax_queue_id: str | None = None
    refill_requested_date: datetime | None = None
    md_approved_over_phone: bool = False
    sig: str | None = None
    refill_authorized_by: str | None = None

    @property
    def is_processing(self) -> bool:
        return self.status is not None and self.status not in (
            MilestoneStatus.COMPLETED,
            MilestoneStatus.NOT_INITIATED,
        )
