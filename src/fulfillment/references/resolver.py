"""Reference resolver — best-effort hydration of an aggregate's relations.

Relations are loaded onto holder objects (``OrderRelations`` and
``PrescriptionRelations``) that sit next to the aggregate. Every requested
relation is attempted, even after one fails:

    * a missing record leaves the relation unset and is not an error
    * any other failure is collected under the relation's name
    * relations that did load stay on the holder

Once every relation has been attempted, collected failures are raised
together as a single ``ReferenceLoadError``.
"""

from dataclasses import dataclass, field

import structlog
from protean.exceptions import ObjectNotFoundError

from fulfillment.exceptions import ReferenceLoadError
from fulfillment.order.order import Order
from fulfillment.prescription.prescription import Prescription
from fulfillment.references.models import Address, Doctor, Insurance, Patient, Payment, Pharmacy, User
from fulfillment.references.port import ReferenceLookup

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderLoadConfig:
    load_address: bool = True
    load_payment: bool = True
    load_origin_pharmacy: bool = True
    load_partner_pharmacy: bool = True


@dataclass(frozen=True)
class RxLoadConfig:
    load_manager: bool = True
    load_patient: bool = True
    load_doctor: bool = True
    load_insurance: bool = True
    load_order: bool = True
    order_load_config: OrderLoadConfig | None = field(default_factory=OrderLoadConfig)

    @classmethod
    def default(cls) -> "RxLoadConfig":
        """Prescription relations and the current order, without the order's own relations."""
        return cls(order_load_config=None)

    @classmethod
    def no_filter_load_all_refs(cls) -> "RxLoadConfig":
        """Every relation, including the current order's."""
        return cls()

    @classmethod
    def without_references(cls) -> "RxLoadConfig":
        return cls(
            load_manager=False,
            load_patient=False,
            load_doctor=False,
            load_insurance=False,
            load_order=False,
            order_load_config=None,
        )


@dataclass
class OrderRelations:
    order: Order
    address: Address | None = None
    payment: Payment | None = None
    origin_pharmacy: Pharmacy | None = None
    partner_pharmacy: Pharmacy | None = None


@dataclass
class PrescriptionRelations:
    prescription: Prescription
    manager: User | None = None
    patient: Patient | None = None
    doctor: Doctor | None = None
    insurance: Insurance | None = None
    current_order: OrderRelations | None = None


# relation name -> (id attribute, record type, config flag)
_ORDER_RELATIONS = {
    "address": ("address_id", Address, "load_address"),
    "payment": ("payment_id", Payment, "load_payment"),
    "origin_pharmacy": ("origin_pharmacy_id", Pharmacy, "load_origin_pharmacy"),
    "partner_pharmacy": ("partner_pharmacy_id", Pharmacy, "load_partner_pharmacy"),
}

_RX_RELATIONS = {
    "manager": ("manager_id", User, "load_manager"),
    "patient": ("patient_id", Patient, "load_patient"),
    "doctor": ("doctor_id", Doctor, "load_doctor"),
    "insurance": ("insurance_id", Insurance, "load_insurance"),
}


class ReferenceResolver:
    def __init__(self, lookup: ReferenceLookup):
        self.lookup = lookup

    def _resolve(self, relation: str, entity_type: type, identifier: str, errors: dict):
        try:
            return self.lookup.resolve(entity_type, identifier)
        except ObjectNotFoundError:
            logger.debug("relation_not_found", relation=relation, reference_id=identifier)
        except Exception as exc:
            logger.warning("relation_load_failed", relation=relation, reference_id=identifier, error=str(exc))
            errors[relation] = exc
        return None

    def _load(self, holder, aggregate, relations: dict, config, skip_loaded: bool) -> dict[str, Exception]:
        errors: dict[str, Exception] = {}
        for relation, (id_attribute, entity_type, flag) in relations.items():
            if config is not None and not getattr(config, flag):
                continue
            identifier = getattr(aggregate, id_attribute)
            if identifier is None:
                continue
            if skip_loaded and getattr(holder, relation) is not None:
                continue

            record = self._resolve(relation, entity_type, identifier, errors)
            if record is not None:
                setattr(holder, relation, record)
        return errors

    def _raise_collected(self, errors: dict[str, Exception]) -> None:
        if errors:
            raise ReferenceLoadError(errors)

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def load_references(self, relations: OrderRelations) -> OrderRelations:
        """Resolve every relation the order references."""
        self._raise_collected(self._load(relations, relations.order, _ORDER_RELATIONS, None, skip_loaded=False))
        return relations

    def load_references_with_config(self, relations: OrderRelations, config: OrderLoadConfig) -> OrderRelations:
        """Resolve only the configured relations that are not loaded yet."""
        self._raise_collected(self._load(relations, relations.order, _ORDER_RELATIONS, config, skip_loaded=True))
        return relations

    # -------------------------------------------------------------------
    # Prescriptions
    # -------------------------------------------------------------------
    def load_rx_references(
        self, relations: PrescriptionRelations, load_order_refs: bool = True
    ) -> PrescriptionRelations:
        config = RxLoadConfig.no_filter_load_all_refs() if load_order_refs else RxLoadConfig.default()
        return self.load_rx_references_with_config(relations, config)

    def load_rx_references_with_config(
        self, relations: PrescriptionRelations, config: RxLoadConfig
    ) -> PrescriptionRelations:
        """Resolve the prescription's relations, then its current order's.

        Failures from both levels are reported together; order relations are
        named ``current_order.<relation>``.
        """
        rx = relations.prescription
        errors = self._load(relations, rx, _RX_RELATIONS, config, skip_loaded=True)

        if config.load_order and rx.current_order_id is not None and relations.current_order is None:
            order = self._resolve("current_order", Order, rx.current_order_id, errors)
            if order is not None:
                relations.current_order = OrderRelations(order)

        if relations.current_order is not None and config.order_load_config is not None:
            order_errors = self._load(
                relations.current_order,
                relations.current_order.order,
                _ORDER_RELATIONS,
                config.order_load_config,
                skip_loaded=True,
            )
            errors.update({f"current_order.{relation}": error for relation, error in order_errors.items()})

        self._raise_collected(errors)
        return relations
