"""Client-side validation run before anything is sent to the backend"""

import random
import time
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from rental_contracts.models.contract import Contract


class SignatureRequired(ValueError):
    """Raised when a signature submission has no usable image"""


# Form field -> message shown next to it
REQUIRED_FIELDS = {
    "propertyAddress": "Property address is required.",
    "tenantName": "Tenant name is required.",
    "tenantEmail": "Tenant email is required.",
    "tenantPhone": "Tenant phone is required.",
    "tenantAddress": "Tenant address is required.",
    "landlordName": "Landlord name is required.",
    "landlordEmail": "Landlord email is required.",
    "landlordPhone": "Landlord phone is required.",
    "landlordAddress": "Landlord address is required.",
    "startDate": "Start date is required.",
    "endDate": "End date is required.",
    "monthlyRent": "Monthly rent is required.",
    "securityDeposit": "Security deposit is required.",
    "bedrooms": "Number of bedrooms is required.",
    "fans": "Number of fans is required.",
    "lights": "Number of lights is required.",
    "geysers": "Number of geysers is required.",
    "mirrors": "Number of mirrors is required.",
    "taps": "Number of taps is required.",
    "maintenanceCharges": "Maintenance charges are required.",
    "landlordFatherName": "Landlord's father name is required.",
    "tenantFatherName": "Tenant's father name is required.",
    "tenantOccupation": "Tenant's occupation (working at/studying at) is required.",
}


def _blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


# Editing checks only what the backend lets a party change
EDIT_REQUIRED_FIELDS = [
    "propertyAddress",
    "tenantName", "tenantEmail", "tenantPhone", "tenantAddress",
    "landlordName", "landlordEmail", "landlordPhone", "landlordAddress",
    "startDate", "endDate", "monthlyRent", "securityDeposit",
]


def validate_contract_form(data: dict) -> dict[str, str]:
    """Return a field -> error message map; empty when the form is valid."""
    return _validate(data, list(REQUIRED_FIELDS))


def validate_contract_edit(data: dict) -> dict[str, str]:
    """Same as ``validate_contract_form`` for the edit form's smaller field set."""
    return _validate(data, EDIT_REQUIRED_FIELDS)


def _validate(data: dict, required: list[str]) -> dict[str, str]:
    errors = {
        field: REQUIRED_FIELDS[field]
        for field in required
        if _blank(data.get(field))
    }

    start, end = data.get("startDate"), data.get("endDate")
    if "startDate" not in errors and "endDate" not in errors:
        try:
            if date.fromisoformat(str(end)[:10]) <= date.fromisoformat(str(start)[:10]):
                errors["endDate"] = "End date must be after the start date."
        except ValueError:
            errors["startDate"] = "Dates must be in YYYY-MM-DD format."

    for field in ("monthlyRent", "securityDeposit", "maintenanceCharges"):
        if field in errors or field not in required:
            continue
        try:
            if float(data[field]) < 0:
                errors[field] = "Amount cannot be negative."
        except (TypeError, ValueError):
            errors[field] = "Amount must be a number."

    return errors


def validate_signature_image(image: Optional[str]) -> str:
    """Return the stripped image or raise ``SignatureRequired``."""
    if image is None or not image.strip():
        raise SignatureRequired("Signature is required.")
    return image.strip()


class PartyInput(BaseModel):
    name: str
    email: str
    phone: str
    address: str


class ContractDraft(BaseModel):
    """Validated create-contract payload in the backend's wire shape"""
    model_config = ConfigDict(populate_by_name=True)

    contract_id: str = Field(..., alias="contractId")
    property_id: str = Field(..., alias="propertyId")
    tenant_id: str = Field(..., alias="tenantId")
    property_address: str = Field(..., alias="propertyAddress")
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    monthly_rent: float = Field(..., alias="monthlyRent")
    security_deposit: float = Field(..., alias="securityDeposit")
    maintenance_charges: float = Field(..., alias="maintenanceCharges")
    terms: str
    conditions: str = ""
    place_of_execution: str = Field(..., alias="placeOfExecution")
    tenant_details: PartyInput = Field(..., alias="tenantDetails")
    landlord_details: PartyInput = Field(..., alias="landlordDetails")
    witness_name: str = Field("", alias="witnessName")
    witness_address: str = Field("", alias="witnessAddress")
    bedrooms: int
    fans: int
    lights: int
    geysers: int
    mirrors: int
    taps: int
    landlord_father_name: str = Field(..., alias="landlordFatherName")
    tenant_father_name: str = Field(..., alias="tenantFatherName")
    tenant_occupation: str = Field(..., alias="tenantOccupation")

    @classmethod
    def from_form(cls, form: dict, **ids) -> "ContractDraft":
        """Build from a flat form after ``validate_contract_form`` passed.

        ``ids`` supplies ``contractId``, ``propertyId`` and ``tenantId``.
        """
        payload = {k: v for k, v in form.items() if not k.startswith(("tenant", "landlord"))}
        payload.update(ids)
        for side in ("tenant", "landlord"):
            payload[f"{side}Details"] = _party_form(form, side)
        payload["landlordFatherName"] = form.get("landlordFatherName", "")
        payload["tenantFatherName"] = form.get("tenantFatherName", "")
        payload["tenantOccupation"] = form.get("tenantOccupation", "")
        payload.setdefault("terms", form.get("terms", ""))
        payload.setdefault("placeOfExecution", form.get("placeOfExecution", ""))
        return cls.model_validate(payload)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def generate_contract_id() -> str:
    """``RENT-<epoch ms>-<0..9999>``, the id format the marketplace uses"""
    return f"RENT-{int(time.time() * 1000)}-{random.randint(0, 9999)}"


def _party_form(form: dict, side: str) -> dict:
    return {
        "name": form.get(f"{side}Name", ""),
        "email": form.get(f"{side}Email", ""),
        "phone": form.get(f"{side}Phone", ""),
        "address": form.get(f"{side}Address", ""),
    }


def edit_form(contract: Contract) -> dict:
    """Flat edit form prefilled from a contract snapshot."""
    form = {
        "propertyAddress": contract.property_address,
        "startDate": contract.start_date.date().isoformat() if contract.start_date else "",
        "endDate": contract.end_date.date().isoformat() if contract.end_date else "",
        "monthlyRent": contract.monthly_rent,
        "securityDeposit": contract.security_deposit,
        "terms": contract.terms,
        "conditions": contract.conditions,
        "placeOfExecution": contract.place_of_execution,
        "witnessName": contract.witness_name,
        "witnessAddress": contract.witness_address,
    }
    for side, details in (("tenant", contract.tenant_details), ("landlord", contract.landlord_details)):
        form[f"{side}Name"] = details.name
        form[f"{side}Email"] = details.email
        form[f"{side}Phone"] = details.phone
        form[f"{side}Address"] = details.address
    return form


class ContractUpdate(BaseModel):
    """Edit payload limited to the fields the backend accepts on update"""
    model_config = ConfigDict(populate_by_name=True)

    property_address: str = Field(..., alias="propertyAddress")
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    monthly_rent: float = Field(..., alias="monthlyRent")
    security_deposit: float = Field(..., alias="securityDeposit")
    terms: str = ""
    conditions: str = ""
    place_of_execution: str = Field("", alias="placeOfExecution")
    tenant_details: PartyInput = Field(..., alias="tenantDetails")
    landlord_details: PartyInput = Field(..., alias="landlordDetails")
    witness_name: str = Field("", alias="witnessName")
    witness_address: str = Field("", alias="witnessAddress")

    @classmethod
    def from_form(cls, form: dict) -> "ContractUpdate":
        payload = {k: v for k, v in form.items() if not k.startswith(("tenant", "landlord"))}
        payload["tenantDetails"] = _party_form(form, "tenant")
        payload["landlordDetails"] = _party_form(form, "landlord")
        return cls.model_validate(payload)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
