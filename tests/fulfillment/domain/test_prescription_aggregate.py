"""Tests for the Prescription aggregate and its read-through predicates."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from freezegun import freeze_time
from fulfillment.exceptions import InvalidEnumValueError
from fulfillment.order.order import Order
from fulfillment.order.vocabulary import (
    MilestoneStatus,
    MissingStatus,
    OriginType,
    PaymentOption,
    RegionKind,
    SleepState,
    YesNo,
)
from fulfillment.prescription.prescription import Prescription
from fulfillment.references.models import Doctor, Insurance, Patient, User


def _insurance(**fields):
    return Insurance(insurance_id=str(uuid4()), **fields)


def _rx_with_order(name="Atorvastatin", origin=OriginType.TRANSFER, **fields):
    rx = Prescription.initialize(name, origin)
    for field, value in fields.items():
        setattr(rx, field, value)
    order = Order.initialize("1357-2468-0000", origin)
    rx.add_order(order)
    return rx, order


class TestRelations:
    def test_add_order_links_both_ways(self):
        rx = Prescription.initialize("Lisinopril", OriginType.TRANSFER)
        order = Order.initialize("1357-2468-0000", OriginType.TRANSFER)

        rx.add_order(order)

        assert rx.current_order_id == str(order.id)
        assert order.rx_id == str(rx.id)

    def test_add_related_records_sets_ids(self):
        rx = Prescription.initialize("Lisinopril", OriginType.TRANSFER)
        patient = Patient(patient_id=str(uuid4()), first_name="Ada", last_name="Byron")
        doctor = Doctor(doctor_id=str(uuid4()), name="Dr. Ruiz")
        manager = User(user_id=str(uuid4()), email="care@example.com")

        rx.add_patient(patient)
        rx.add_doctor(doctor)
        rx.add_manager(manager)

        assert rx.patient_id == patient.patient_id
        assert rx.doctor_id == doctor.doctor_id
        assert rx.manager_id == manager.user_id

    def test_defaults(self):
        rx = Prescription.initialize("Metformin", "FromDoctorDirect")
        assert rx.origin_type == OriginType.FROM_DOCTOR_DIRECT.value
        assert rx.refills_remaining == -1
        assert rx.medication_price == "0"
        assert rx.previous_medication_price == "-1"

    def test_rejects_unknown_origin(self):
        with pytest.raises(InvalidEnumValueError):
            Prescription.initialize("Metformin", "Smoke signal")


class TestCurrentOrderSetters:
    def test_set_payment_option(self):
        rx, order = _rx_with_order()
        rx.set_payment_option(order, out_of_pocket=True)
        assert order.payment_option == PaymentOption.PAY_DIRECTLY.value
        rx.set_payment_option(order, out_of_pocket=False)
        assert order.payment_option == PaymentOption.PAY_THROUGH_INSURANCE.value

    def test_set_insurance_type(self):
        rx, order = _rx_with_order()
        rx.set_insurance_type(order, govt_sponsored=True)
        assert order.region(RegionKind.INSURANCE).is_federal_sponsored_insurance == YesNo.YES

    def test_set_missing_info_suspends_current_order(self):
        rx, order = _rx_with_order()
        rx.set_missing_info(order, MissingStatus.NO_PATIENT)
        assert order.missing_status() == MissingStatus.NO_PATIENT

    def test_setters_without_order_are_noops(self):
        rx = Prescription.initialize("Metformin", OriginType.TRANSFER)
        rx.set_payment_option(None, out_of_pocket=True)
        rx.set_insurance_type(None, govt_sponsored=False)
        rx.set_missing_info(None, MissingStatus.NO_PATIENT)
        assert rx.current_order_id is None


class TestNaming:
    @pytest.mark.parametrize("name", ["Transfer all", "Transfer All", "TransferAll"])
    def test_transfer_all_names(self, name):
        assert Prescription.initialize(name, OriginType.TRANSFER).is_name_transfer_all() is True

    def test_full_name_is_uppercased(self):
        rx = Prescription.initialize("Atorvastatin", OriginType.TRANSFER)
        rx.form = "tablet"
        rx.strength = "20mg"
        assert rx.full_rx_name() == "ATORVASTATIN TABLET 20MG"

    @pytest.mark.parametrize(
        "origin,expected",
        [(OriginType.FROM_DOCTOR_DIRECT, "New Prescription"), (OriginType.FROM_DOCTOR_PAPER, "Paper Prescription")],
    )
    def test_unnamed_doctor_prescriptions(self, origin, expected):
        assert Prescription.initialize("", origin).full_rx_name() == expected


class TestInsurance:
    def test_valid_insurance_needs_member_id_and_bin_or_card_image(self):
        rx = Prescription.initialize("Metformin", OriginType.TRANSFER)
        assert rx.has_valid_insurance(None) is False
        assert rx.has_valid_insurance(_insurance(member_id="W123", bin_number="004336")) is True
        assert rx.has_valid_insurance(_insurance(card_image_id="img-1")) is True
        assert rx.has_valid_insurance(_insurance(member_id="W123")) is False

    def test_insurance_missing_only_for_insurance_orders(self):
        rx, order = _rx_with_order()
        rx.set_payment_option(order, out_of_pocket=True)
        assert rx.is_insurance_missing(order) is False
        assert rx.insurance_missing_or_exception(order, None) is False

        rx.set_payment_option(order, out_of_pocket=False)

        assert rx.is_insurance_missing(order) is True
        assert rx.insurance_missing_or_exception(order, None) is True

    @pytest.mark.parametrize(
        "status",
        [
            MissingStatus.INSURANCE_EXPIRED,
            MissingStatus.INVALID_INSURANCE,
            MissingStatus.NOT_COVERED,
            MissingStatus.MISSING_INSURANCE,
        ],
    )
    def test_insurance_exception_overlays(self, status):
        rx, order = _rx_with_order()
        insurance = _insurance(member_id="W123", bin_number="004336")
        rx.add_insurance(insurance)
        rx.set_payment_option(order, out_of_pocket=False)
        assert rx.insurance_missing_or_exception(order, insurance) is False

        rx.set_missing_info(order, status)

        assert rx.insurance_missing_or_exception(order, insurance) is True


class TestAddInsurance:
    def test_sets_insurance_id(self):
        rx = Prescription.initialize("Metformin", OriginType.TRANSFER)
        insurance = _insurance(member_id="W123", bin_number="004336")

        rx.add_insurance(insurance)

        assert rx.insurance_id == insurance.insurance_id
        assert rx.is_insurance_missing(None) is False

    def test_clears_pending(self):
        rx = Prescription.initialize("Metformin", OriginType.TRANSFER)
        rx.pending = True
        rx.pending_since_date = datetime(2026, 3, 1, tzinfo=UTC)

        rx.add_insurance(_insurance(card_image_id="img-1"))

        assert rx.pending is False
        assert rx.pending_since_date is None

    def test_releases_insurance_exception_on_current_order(self):
        rx, order = _rx_with_order()
        order.set_missing_info_state(MissingStatus.MISSING_INSURANCE)
        order.update_sleep_state(SleepState.CALL_PATIENT)

        rx.add_insurance(_insurance(card_image_id="img-1"), order)

        assert order.is_suspended() is False
        assert order.get_sleep_status(SleepState.CALL_PATIENT) is None

    def test_moves_payment_out_of_cash_price_check(self):
        rx, order = _rx_with_order()
        order.set_payment_option(out_of_pocket=True)
        order.update_milestone_status(RegionKind.PAYMENT, MilestoneStatus.CASH_PRICE_CHECK)

        rx.add_insurance(_insurance(card_image_id="img-1"), order)

        assert order.payment_status() == MilestoneStatus.NOT_INITIATED
        assert order.is_pay_through_insurance() is True

    def test_first_fill_is_routed(self):
        rx, order = _rx_with_order()
        rx.add_insurance(_insurance(card_image_id="img-1"), order)
        assert order.transfer_status() == MilestoneStatus.CALL_COMPLETED

    def test_without_order_leaves_orders_alone(self):
        rx, order = _rx_with_order()
        rx.add_insurance(_insurance(card_image_id="img-1"))
        assert order.transfer_status() == MilestoneStatus.NOT_INITIATED


class TestScheduling:
    @freeze_time("2026-07-10 15:00:00")
    def test_scheduled_for_later(self):
        rx = Prescription.initialize("Metformin", OriginType.TRANSFER)
        assert rx.is_scheduled_for_later() is False

        rx.schedule_date = datetime(2026, 7, 10, 23, 0, tzinfo=UTC)
        assert rx.is_scheduled_for_later() is False

        rx.schedule_date = datetime(2026, 7, 11, 8, 0, tzinfo=UTC)
        assert rx.is_scheduled_for_later() is True

    @freeze_time("2026-01-01 09:00:00")
    def test_naive_schedule_date_is_read_as_utc(self):
        rx = Prescription.initialize("Metformin", OriginType.TRANSFER, schedule_date=datetime(2026, 1, 5))
        assert rx.schedule_date == datetime(2026, 1, 5, tzinfo=UTC)
        assert rx.is_scheduled_for_later() is True

    @freeze_time("2026-01-01 09:00:00")
    def test_naive_stored_schedule_date(self):
        rx = Prescription(name="Metformin", schedule_date="2026-01-05T00:00:00")
        assert rx.is_scheduled_for_later() is True
        assert rx.is_scheduled_for_later(now=datetime(2026, 1, 5, 8, 0)) is False

    def test_earliest_refill_date_prefers_insurance_report(self):
        reported = datetime(2026, 8, 1, tzinfo=UTC)
        rx, order = _rx_with_order(last_fill_date=datetime(2026, 7, 1, tzinfo=UTC), days_of_supply=30)
        insurance = order.region(RegionKind.INSURANCE)
        insurance.earliest_refill_date = reported
        order.store_region(insurance)
        assert rx.earliest_refill_date(order) == reported

    def test_earliest_refill_date_from_days_of_supply(self):
        last_fill = datetime(2026, 7, 1, tzinfo=UTC)
        rx, order = _rx_with_order(last_fill_date=last_fill, days_of_supply=30)
        assert rx.earliest_refill_date(order) == last_fill + timedelta(days=24)
        assert rx.earliest_refill_date() == last_fill + timedelta(days=24)

    def test_earliest_refill_date_unknown(self):
        rx, order = _rx_with_order()
        assert rx.earliest_refill_date(order) is None


class TestPaymentPredicates:
    def _authorized(self, **fields):
        rx, order = _rx_with_order(**fields)
        order.set_payment_option(out_of_pocket=True)
        order.update_milestone_status(RegionKind.PAYMENT, MilestoneStatus.PAYMENT_AUTHORIZED)
        return rx, order

    def test_missing_payment_once_authorized_without_method(self):
        rx, order = self._authorized()
        assert rx.is_missing_payment(order) is True

        fresh_rx, fresh_order = _rx_with_order()
        assert fresh_rx.is_missing_payment(fresh_order) is False

    def test_payment_error_once_authorized(self):
        rx, order = self._authorized()
        order.set_missing_info_state(MissingStatus.PAYMENT_ERROR)
        assert rx.has_payment_error(order) is True

    @pytest.mark.parametrize("field", ["archived", "suspended"])
    def test_inactive_prescriptions_have_no_payment_issues(self, field):
        rx, order = self._authorized(**{field: True})
        order.set_missing_info_state(MissingStatus.PAYMENT_ERROR)
        assert rx.has_payment_error(order) is False
        assert rx.is_missing_payment(order) is False

    def test_partner_source(self):
        rx = Prescription.initialize("Metformin", OriginType.TRANSFER)
        rx.attributes = {"source": "acme-health"}
        assert rx.is_rx_from_partner("acme-health") is True
        assert rx.is_rx_from_partner("other") is False
