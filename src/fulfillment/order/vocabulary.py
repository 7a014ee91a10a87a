"""Closed vocabularies for order fulfillment.

Enum values are persisted and matched on by external systems, so their
spelling and casing are part of the storage contract. Use ``coerce`` at any
boundary where a raw string enters the domain.
"""

from enum import Enum

from fulfillment.exceptions import InvalidEnumValueError


class MilestoneStatus(str, Enum):
    NOT_INITIATED = "NOT_INITIATED"
    CALL_COMPLETED = "CALL_COMPLETED"
    COMPLETED = "COMPLETED"
    TRANSFER_INITIATED = "TRANSFER_INITIATED"
    TRANSFER_REQUEST_SENT = "TRANSFER_REQUEST_SENT"
    ZERO_REFILLS = "ZERO_REFILLS"
    ESCRIPT_REQUEST_SENT = "ESCRIPT_REQUEST_SENT"
    TRANSFER_BACK = "TRANSFER_BACK"
    TRANSFER_OUT = "TRANSFER_OUT"
    VERIFICATION_INITIATED = "VERIFICATION_INITIATED"
    TRANSFER_BACK_COMPLETED = "TRANSFER_BACK_COMPLETED"
    TRANSFER_OUT_COMPLETED = "TRANSFER_OUT_COMPLETED"
    REFILL_NOT_DUE = "REFILL_NOT_DUE"
    SEND_NEW_RX_FAX = "SEND_NEW_RX_FAX"
    TRANSFER_CONTROLLED = "TRANSFER_CONTROLLED"
    ROUTE_CONTROLLED = "ROUTE_CONTROLLED"
    REVERSE_INSURANCE = "REVERSE_INSURANCE"
    INSURANCE_REVERSED = "INSURANCE_REVERSED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    PAYMENT_AUTHORIZED = "PAYMENT_AUTHORIZED"
    FAX_SENT = "FAX_SENT"
    PRIOR_AUTH = "PRIOR_AUTH"
    PRIOR_AUTH_PROCESSING = "PRIOR_AUTH_PROCESSING"
    SHIPPED = "SHIPPED"
    WAITING_LABEL_SCAN = "WAITING_LABEL_SCAN"
    SHIPPING_LABEL_GENERATED = "SHIPPING_LABEL_GENERATED"
    GENERATE_SHIPPING_LABEL = "GENERATE_SHIPPING_LABEL"
    PENDING_ACTION_TAKEN = "PENDING_ACTION_TAKEN"
    CASH_PRICE_CHECK = "CASH_PRICE_CHECK"
    CASH_PRICE_IDENTIFIED = "CASH_PRICE_IDENTIFIED"
    PENDING_APPROVAL_UNTIL_FREE_TRIAL = "PENDING_APPROVAL_UNTIL_FREE_TRIAL"
    PENDING_APPROVAL_UNTIL_PRICE_INSPECTION = "PENDING_APPROVAL_UNTIL_PRICE_INSPECTION"
    PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_BY_PP = "PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_BY_PP"
    PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_NO_FREE_TRIAL = "PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_NO_FREE_TRIAL"
    PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_FREE_TRIAL = "PENDING_APPROVAL_UNTIL_PRICE_INSPECTION_FREE_TRIAL"
    PENDING_APPROVAL_AFTER_PRICE_INSPECTION = "PENDING_APPROVAL_AFTER_PRICE_INSPECTION"
    PENDING_APPROVAL_AND_SIGNUP = "PENDING_APPROVAL_AND_SIGNUP"
    PENDING_APPROVAL_OFFLINE = "PENDING_APPROVAL_OFFLINE"
    PAYMENT_COMPLETE_INVOICE_PENDING = "PAYMENT_COMPLETE_INVOICE_PENDING"
    PAYMENT_INCOMPLETE_INVOICE_PENDING = "PAYMENT_INCOMPLETE_INVOICE_PENDING"
    PAYMENT_INCOMPLETE_OFFLINE = "PAYMENT_INCOMPLETE_OFFLINE"
    INSURANCE_OVERRIDE = "INSURANCE_OVERRIDE"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"


# Statuses an operator may set through a field-level update.
UPDATABLE_MILESTONE_STATUSES = frozenset(
    {
        MilestoneStatus.NOT_INITIATED,
        MilestoneStatus.COMPLETED,
        MilestoneStatus.CALL_COMPLETED,
        MilestoneStatus.TRANSFER_INITIATED,
        MilestoneStatus.TRANSFER_BACK,
        MilestoneStatus.TRANSFER_REQUEST_SENT,
        MilestoneStatus.ZERO_REFILLS,
        MilestoneStatus.ESCRIPT_REQUEST_SENT,
        MilestoneStatus.FAX_SENT,
        MilestoneStatus.PENDING_APPROVAL,
        MilestoneStatus.PAYMENT_AUTHORIZED,
        MilestoneStatus.PRIOR_AUTH,
        MilestoneStatus.REFILL_NOT_DUE,
        MilestoneStatus.SHIPPED,
        MilestoneStatus.WAITING_LABEL_SCAN,
        MilestoneStatus.REVERSE_INSURANCE,
        MilestoneStatus.INSURANCE_REVERSED,
    }
)


class RegionKind(str, Enum):
    """Milestone region discriminator; values are the persisted region keys."""

    TRANSFER = "transferMilestone"
    NEW_RX = "orderVerification"
    INSURANCE = "insuranceVerificationMilestone"
    PAYMENT = "paymentMilestone"
    STOCK_CHECK = "stockVerificationMilestone"
    DELIVERY = "deliveryMilestone"
    REFILL_AUTH = "refillAuthorization"


class SleepState(str, Enum):
    CALL_PATIENT = "CallPatient"
    SCRUB_AND_ROUTE = "ScrubAndRoute"
    SCRUBBED_AND_ROUTED = "ScrubbedAndRouted"
    CHECK_FAX = "CheckFax"
    CALL_MD = "CallMD"
    PAYMENT_APPROVAL = "PaymentApproval"
    PAYMENT_APPROVAL_UNTIL_FREE_TRIAL_DELIVERED = "PaymentApprovalUntilFreeTrialDelivered"
    PROCESS_ORDER = "ProcessOrder"
    TRANSFER_FAX_FOLLOW_UP = "TransferFaxFollowUp"
    DELAYED_EMAIL_SENT = "DelayedEmailSent"
    DELAYED_CALLED_CUSTOMER = "DelayedCallCustomer"
    TIMED_SLEEP = "TimedSleep"


class MissingStatus(str, Enum):
    MISSING_INFO = "MISSING_INFO"
    EXCEPTION = "EXCEPTION"
    NOT_COVERED = "NOT_COVERED"
    MISSING_INSURANCE = "MISSING_INSURANCE"
    INVALID_INSURANCE = "INVALID_INSURANCE"
    INSURANCE_EXPIRED = "INSURANCE_EXPIRED"
    NO_PATIENT = "NO_PATIENT"
    REFILLS_DENIED = "REFILLS_DENIED"
    PRIOR_AUTH_DENIED = "PRIOR_AUTH_DENIED"
    STEP_THERAPY_DENIED = "STEP_THERAPY_DENIED"
    NEW_RX_DENIED = "NEW_RX_DENIED"
    PAYMENT_ERROR = "PAYMENT_ERROR"
    COPAY_INCREASED = "COPAY_INCREASED"
    COPAY_DECREASED = "COPAY_DECREASED"
    ORIGINAL_COPAY_NOTAVAILABLE = "ORIGINAL_COPAY_NOTAVAILABLE"
    INVALID_OP_NO_PATIENT = "INVALID_OP_NO_PATIENT"
    INVALID_OP_NO_TRANSFERABLE_RX = "INVALID_OP_NO_TRANSFERABLE_RX"
    OP_REFUSAL = "OP_REFUSAL"
    C2_DRUGS = "C2_DRUGS"
    INSURANCE_OVERRIDE = "INSURANCE_OVERRIDE"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    DELIVERY_RETURNED = "DELIVERY_RETURNED"
    STOCK_EXCEPTION = "STOCK_EXCEPTION"


class MissingField(str, Enum):
    INSURANCE = "INSURANCE"
    DOB = "DOB"
    ADDRESS = "ADDRESS"
    PAYMENT = "PAYMENT"
    DOCTOR = "DOCTOR"
    MRN = "MRN"
    CONTACT_PHONE = "CONTACT_PHONE"
    OTHER = "OTHER"


class InsuranceExceptionType(str, Enum):
    INVALID_CARD_HOLDER_ID = "INVALID_CARD_HOLDER_ID"
    INVALID_GROUP = "INVALID_GROUP"
    INVALID_DOB = "INVALID_DOB"
    INVALID_GENDER_CODE = "INVALID_GENDER_CODE"
    INVALID_PERSON_CODE = "INVALID_PERSON_CODE"
    PRIOR_AUTH_REQUIRED = "PRIOR_AUTH_REQUIRED"
    STEP_THERAPY_REQUIRED = "STEP_THERAPY_REQUIRED"
    NON_FORMULARY_MED = "NON_FORMULARY_MED"
    PLAN_LIMITATIONS_EXCEEDED = "PLAN_LIMITATIONS_EXCEEDED"
    COVERAGE_TERMINATED = "COVERAGE_TERMINATED"
    MEDICARE_PART_B_REQUIRED = "MEDICARE_PART_B_REQUIRED"
    SUBMIT_TO_OTHER_PROCESSOR = "SUBMIT_TO_OTHER_PROCESSOR"
    PHARMACY_NOT_CONTRACTED = "PHARMACY_NOT_CONTRACTED"
    NON_PREFERRED_PHARMACY = "NON_PREFERRED_PHARMACY"
    MUST_USE_MAIL_ORDER = "MUST_USE_MAIL_ORDER"
    MD_NOT_IN_NETWORK = "MD_NOT_IN_NETWORK"
    MISSING_INSURANCE = "MISSING_INSURANCE"
    INVALID_INSURANCE = "INVALID_INSURANCE"


class RefillDeniedType(str, Enum):
    NEED_OFFICE_VISIT = "NEED_OFFICE_VISIT"
    NO_LONGER_TAKING_MEDS = "NO_LONGER_TAKING_MEDS"
    PATIENT_NOT_ON_FILE = "PATIENT_NOT_ON_FILE"
    NO_RESPONSE_FROM_MD = "NO_RESPONSE_FROM_MD"
    OTHER = "OTHER"


class NotificationType(str, Enum):
    EMAIL_TRANSFER_DELAYED = "EMAIL_TRANSFER_DELAYED"
    EMAIL_REFILL_AUTH_DELAYED = "EMAIL_REFILL_AUTH_DELAYED"
    EMAIL_REFILL_AUTH_REQUESTED = "EMAIL_REFILL_AUTH_REQUESTED"
    EMAIL_REFILL_AUTH_NO_RESPONSE = "EMAIL_REFILL_AUTH_NO_RESPONSE"
    SMS_MISSING_INSURANCE_SENT = "SMS_MISSING_INSURANCE_SENT"
    EMAIL_SKIP_REFILL_NOTIFICATION = "EMAIL_SKIP_REFILL_NOTIFICATION"


class FillType(str, Enum):
    FIRST_FILL = "FirstFill"
    REFILL = "ReFill"


class PaymentOption(str, Enum):
    PAY_DIRECTLY = "PayDirectly"
    PAY_THROUGH_INSURANCE = "PayThroughInsurance"


class OriginType(str, Enum):
    TRANSFER = "Transfer"
    FROM_DOCTOR_DIRECT = "FromDoctorDirect"
    FROM_DOCTOR_PAPER = "FromDoctorPaper"


class YesNo(str, Enum):
    YES = "Yes"
    NO = "No"


class DrugType(str, Enum):
    GENERIC = "Generic"
    BRAND_NAME = "BrandName"


class PaymentProvider(str, Enum):
    STRIPE = "Stripe"
    BRAINTREE = "Braintree"


class ShippingOption(str, Enum):
    ONE_DAY_MAIL = "OneDayMail"
    TWO_DAY_MAIL = "TwoDayMail"
    SAME_DAY_DELIVERY = "SameDayDelivery"


def coerce(enum_cls: type[Enum], value, field: str):
    """Return ``value`` as a member of ``enum_cls`` or raise ``InvalidEnumValueError``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidEnumValueError(field, value, [member.value for member in enum_cls]) from None
