"""Tests for the missing-info overlay and its dominance over region predicates."""

import pytest
from fulfillment.exceptions import InvalidEnumValueError
from fulfillment.order.events import MissingInfoCleared, OrderSuspended
from fulfillment.order.milestones import RefillAuthMilestone
from fulfillment.order.missing_info import MissingInfoState
from fulfillment.order.order import Order
from fulfillment.order.vocabulary import (
    InsuranceExceptionType,
    MilestoneStatus,
    MissingField,
    MissingStatus,
    OriginType,
    RefillDeniedType,
    RegionKind,
    SleepState,
)


def _transfer_order():
    return Order.initialize("1111-2222-3333", OriginType.TRANSFER)


def _doctor_order():
    return Order.initialize("4444-5555-6666", OriginType.FROM_DOCTOR_DIRECT)


def _with_payment(status):
    def setup():
        order = _transfer_order()
        order.update_milestone_status(RegionKind.PAYMENT, status)
        return order

    return setup


def _insurance_completed():
    order = _transfer_order()
    order.set_payment_option(out_of_pocket=False)
    order.update_milestone_status(RegionKind.INSURANCE, MilestoneStatus.COMPLETED)
    return order


def _cash_order():
    order = _transfer_order()
    order.set_payment_option(out_of_pocket=True)
    return order


def _refill_auth_in_flight():
    order = _transfer_order()
    order.store_region(RefillAuthMilestone.starting_at(MilestoneStatus.FAX_SENT))
    return order


# Each entry builds an order on which the predicate is True before suspension.
GATED_PREDICATES = [
    ("is_processing_transfer", _transfer_order),
    ("is_processing_new_prescription", _doctor_order),
    ("is_processing_insurance", _transfer_order),
    ("is_processing_insurance_complete", _insurance_completed),
    ("is_processing_cash", _cash_order),
    ("is_processing_payment", _transfer_order),
    ("is_processing_stock_check", _transfer_order),
    ("is_processing_delivery", _transfer_order),
    ("is_processing_refill_auth", _refill_auth_in_flight),
    ("is_pending_payment_approval", _with_payment(MilestoneStatus.PENDING_APPROVAL)),
    ("is_pending_payment_approval_and_signup", _with_payment(MilestoneStatus.PENDING_APPROVAL_AND_SIGNUP)),
    ("is_pending_approval_until_free_trial", _with_payment(MilestoneStatus.PENDING_APPROVAL_UNTIL_FREE_TRIAL)),
    (
        "is_pending_approval_until_price_inspection_free_trial",
        _with_payment(MilestoneStatus.PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_FREE_TRIAL),
    ),
    (
        "is_pending_approval_until_price_inspection_no_free_trial",
        _with_payment(MilestoneStatus.PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_NO_FREE_TRIAL),
    ),
    ("is_pending_transfer", _transfer_order),
]


class TestSuspensionDominance:
    @pytest.mark.parametrize("predicate,setup", GATED_PREDICATES, ids=[name for name, _ in GATED_PREDICATES])
    def test_predicate_holds_before_suspension(self, predicate, setup):
        assert getattr(setup(), predicate)() is True

    @pytest.mark.parametrize("missing_status", list(MissingStatus))
    @pytest.mark.parametrize("predicate,setup", GATED_PREDICATES, ids=[name for name, _ in GATED_PREDICATES])
    def test_any_overlay_forces_predicate_false(self, predicate, setup, missing_status):
        order = setup()
        order.set_missing_info_state(missing_status)
        assert getattr(order, predicate)() is False

    @pytest.mark.parametrize("predicate,setup", GATED_PREDICATES, ids=[name for name, _ in GATED_PREDICATES])
    def test_clearing_overlay_restores_predicate(self, predicate, setup):
        order = setup()
        order.set_missing_info_state(MissingStatus.MISSING_INFO)
        order.clear_missing_info_state()
        assert getattr(order, predicate)() is True

    def test_overlay_leaves_region_statuses_untouched(self):
        order = _transfer_order()
        order.set_missing_info_state(MissingStatus.EXCEPTION)
        assert order.transfer_status() == MilestoneStatus.NOT_INITIATED
        assert order.delivery_status() == MilestoneStatus.NOT_INITIATED

    def test_suspended_order_is_never_fulfilled(self):
        order = _transfer_order()
        order.set_payment_option(out_of_pocket=True)
        for kind in (RegionKind.TRANSFER, RegionKind.PAYMENT, RegionKind.STOCK_CHECK):
            order.update_milestone_status(kind, MilestoneStatus.COMPLETED)
        order.update_milestone_status(RegionKind.DELIVERY, MilestoneStatus.SHIPPED)
        assert order.is_fulfillment_complete() is True

        order.set_missing_info_state(MissingStatus.DELIVERY_RETURNED)

        assert order.is_fulfillment_complete() is False


class TestSetMissingInfoState:
    def test_records_details(self):
        order = _transfer_order()
        order.set_missing_info_state(
            MissingStatus.INVALID_INSURANCE,
            missing_fields=[MissingField.INSURANCE],
            comment="Member id rejected",
            insurance_exception_type=InsuranceExceptionType.INVALID_CARD_HOLDER_ID,
        )

        state = order.missing_info_state
        assert state.missing_status == MissingStatus.INVALID_INSURANCE
        assert state.missing_fields == [MissingField.INSURANCE]
        assert state.comment == "Member id rejected"
        assert state.insurance_exception_type == InsuranceExceptionType.INVALID_CARD_HOLDER_ID
        assert order.is_invalid_insurance() is True

    def test_new_overlay_replaces_previous_one(self):
        order = _transfer_order()
        order.set_missing_info_state(
            MissingStatus.MISSING_INFO, missing_fields=[MissingField.DOB, MissingField.ADDRESS], comment="call"
        )

        order.set_missing_info_state(MissingStatus.PAYMENT_ERROR)

        assert order.missing_status() == MissingStatus.PAYMENT_ERROR
        assert order.missing_info_state.missing_fields == []
        assert order.missing_info_state.comment == ""

    def test_accepts_stored_string(self):
        order = _transfer_order()
        order.set_missing_info_state("STOCK_EXCEPTION")
        assert order.is_stock_exception() is True

    def test_rejects_unknown_status(self):
        order = _transfer_order()
        with pytest.raises(InvalidEnumValueError):
            order.set_missing_info_state("OUT_TO_LUNCH")
        assert order.is_suspended() is False

    def test_raises_order_suspended(self):
        order = _transfer_order()
        before = len(order._events)
        order.set_missing_info_state(MissingStatus.C2_DRUGS)
        events = order._events[before:]
        assert len(events) == 1
        assert isinstance(events[0], OrderSuspended)
        assert events[0].missing_status == "C2_DRUGS"

    def test_refill_denied_type_only_for_refills_denied(self):
        order = _transfer_order()
        order.set_missing_info_state(
            MissingStatus.REFILLS_DENIED, refill_denied_type=RefillDeniedType.NEED_OFFICE_VISIT
        )
        assert order.refill_denied_type() == RefillDeniedType.NEED_OFFICE_VISIT

        order.set_missing_info_state(MissingStatus.EXCEPTION, refill_denied_type=RefillDeniedType.OTHER)
        assert order.refill_denied_type() is None


class TestMissingInfoStateHasStatus:
    def test_matches_any_listed_status(self):
        state = MissingInfoState(missing_status=MissingStatus.COPAY_DECREASED.value)
        assert state.has_status(MissingStatus.COPAY_INCREASED, MissingStatus.COPAY_DECREASED) is True
        assert state.has_status(MissingStatus.PAYMENT_ERROR) is False

    def test_order_predicates_read_the_overlay(self):
        order = _transfer_order()
        order.set_missing_info_state(MissingStatus.DELIVERY_FAILED)
        assert order.missing_info_state.has_status(MissingStatus.DELIVERY_FAILED) is True
        assert order.has_delivery_failed() is True
        assert order.has_delivery_returned() is False


class TestOverlayPredicates:
    @pytest.mark.parametrize(
        "missing_status,predicate",
        [
            (MissingStatus.DELIVERY_FAILED, "has_delivery_failed"),
            (MissingStatus.DELIVERY_RETURNED, "has_delivery_returned"),
            (MissingStatus.REFILLS_DENIED, "is_refills_denied"),
            (MissingStatus.PRIOR_AUTH_DENIED, "is_prior_auth_denied"),
            (MissingStatus.STEP_THERAPY_DENIED, "is_step_therapy_denied"),
            (MissingStatus.PAYMENT_ERROR, "has_payment_error"),
            (MissingStatus.INVALID_INSURANCE, "is_invalid_insurance"),
            (MissingStatus.INSURANCE_EXPIRED, "is_invalid_insurance"),
            (MissingStatus.STOCK_EXCEPTION, "is_stock_exception"),
        ],
    )
    def test_predicate_matches_its_status(self, missing_status, predicate):
        order = _transfer_order()
        assert getattr(order, predicate)() is False
        order.set_missing_info_state(missing_status)
        assert getattr(order, predicate)() is True


class TestClearMissingInfoState:
    def test_clear_without_filter_lifts_any_overlay(self):
        order = _transfer_order()
        order.set_missing_info_state(MissingStatus.NO_PATIENT)
        assert order.clear_missing_info_state() is True
        assert order.is_suspended() is False

    def test_targeted_clear_ignores_other_statuses(self):
        order = _transfer_order()
        order.set_missing_info_state(MissingStatus.STOCK_EXCEPTION)

        assert order.clear_missing_info_state(MissingStatus.PAYMENT_ERROR) is False

        assert order.missing_status() == MissingStatus.STOCK_EXCEPTION

    def test_targeted_clear_matches_any_listed_status(self):
        order = _transfer_order()
        order.set_missing_info_state(MissingStatus.COPAY_DECREASED)
        assert order.clear_missing_info_state(MissingStatus.COPAY_INCREASED, MissingStatus.COPAY_DECREASED) is True
        assert order.is_suspended() is False

    def test_clear_when_not_suspended_returns_false(self):
        order = _transfer_order()
        before = len(order._events)
        assert order.clear_missing_info_state() is False
        assert order._events[before:] == []

    def test_raises_missing_info_cleared(self):
        order = _transfer_order()
        order.set_missing_info_state(MissingStatus.NOT_COVERED)

        order.clear_missing_info_state()

        assert isinstance(order._events[-1], MissingInfoCleared)
        assert order._events[-1].missing_status == "NOT_COVERED"


class TestPendingActionTaken:
    @pytest.mark.parametrize("origin", [OriginType.TRANSFER, OriginType.FROM_DOCTOR_PAPER])
    def test_clears_overlay_and_call_patient_sleep(self, origin):
        order = Order.initialize("1111-2222-3333", origin)
        order.set_missing_info_state(MissingStatus.MISSING_INFO, missing_fields=[MissingField.DOCTOR])
        order.update_sleep_state(SleepState.CALL_PATIENT)
        order.update_sleep_state(SleepState.CHECK_FAX)

        order.pending_action_taken()

        assert order.is_suspended() is False
        assert order.get_sleep_status(SleepState.CALL_PATIENT) is None
        assert order.get_sleep_status(SleepState.CHECK_FAX) is not None

    def test_moves_intake_region_to_pending_action_taken(self):
        order = _transfer_order()
        order.pending_action_taken()
        assert order.transfer_status() == MilestoneStatus.PENDING_ACTION_TAKEN
        assert order.region(RegionKind.NEW_RX) is None

    def test_resumes_processing(self):
        order = _doctor_order()
        order.set_missing_info_state(MissingStatus.NEW_RX_DENIED)
        assert order.is_processing_new_prescription() is False

        order.pending_action_taken()

        assert order.is_processing_new_prescription() is True
        assert order.is_processing_stock_check() is True
