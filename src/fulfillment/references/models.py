"""Read models for records owned by other services.

Orders and prescriptions keep only the identifier of each related record.
The ``ReferenceResolver`` loads these projections on demand; they are kept
current by the services that own the underlying data.
"""

from protean.fields import Boolean, Identifier, Integer, String

from fulfillment.domain import fulfillment


@fulfillment.projection
class Address:
    address_id = Identifier(identifier=True, required=True)
    name = String(max_length=200)
    street = String(max_length=255)
    apt = String(max_length=50)
    city = String(max_length=100)
    state = String(max_length=50)
    zip = String(max_length=20)
    phone = String(max_length=30)


@fulfillment.projection
class Payment:
    payment_id = Identifier(identifier=True, required=True)
    provider = String(max_length=50)
    customer_id = String(max_length=100)
    card_brand = String(max_length=50)
    last4 = String(max_length=4)
    exp_month = Integer()
    exp_year = Integer()


@fulfillment.projection
class Pharmacy:
    pharmacy_id = Identifier(identifier=True, required=True)
    name = String(required=True, max_length=200)
    phone = String(max_length=30)
    fax = String(max_length=30)
    npi = String(max_length=20)
    address = String(max_length=500)
    is_partner = Boolean(default=False)


@fulfillment.projection
class Doctor:
    doctor_id = Identifier(identifier=True, required=True)
    name = String(required=True, max_length=200)
    phone = String(max_length=30)
    fax = String(max_length=30)
    npi = String(max_length=20)
    city = String(max_length=100)


@fulfillment.projection
class Insurance:
    insurance_id = Identifier(identifier=True, required=True)
    carrier = String(max_length=200)
    member_id = String(max_length=100)
    group_number = String(max_length=100)
    bin_number = String(max_length=20)
    pcn_number = String(max_length=20)
    card_image_id = String(max_length=100)
    govt_sponsored = Boolean(default=False)

    def is_usable(self) -> bool:
        """A card can be billed with a member id and BIN, or from a card image."""
        return bool(self.member_id and self.bin_number) or bool(self.card_image_id)


@fulfillment.projection
class Patient:
    patient_id = Identifier(identifier=True, required=True)
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    dob = String(max_length=10)
    phone = String(max_length=30)


@fulfillment.projection
class User:
    user_id = Identifier(identifier=True, required=True)
    email = String(required=True, max_length=255)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
