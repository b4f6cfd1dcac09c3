"""Rental contract models as served by the marketplace backend"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContractStatus(str, Enum):
    """Every lifecycle value either status field can carry"""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    LANDLORD_APPROVED = "landlord_approved"
    TENANT_APPROVED = "tenant_approved"
    APPROVED = "approved"
    PENDING_LANDLORD_SIGNATURE = "pending_landlord_signature"
    PENDING_TENANT_SIGNATURE = "pending_tenant_signature"
    PENDING_WITNESS_SIGNATURE = "pending_witness_signature"
    FULLY_SIGNED = "fully_signed"
    ACTIVE = "active"
    COMPLETED = "completed"
    TERMINATED = "terminated"
    EXPIRED = "expired"
    REJECTED = "rejected"


class Party(str, Enum):
    """Contractual role of a user on one contract"""
    LANDLORD = "landlord"
    TENANT = "tenant"
    WITNESS = "witness"


def _ref_id(value: Any) -> Any:
    """Backend populates references as objects; keep only the id."""
    if isinstance(value, dict):
        return value.get("_id") or value.get("id")
    return value


class WireModel(BaseModel):
    """Base for payloads using the backend's camelCase names"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PartyDetails(WireModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""


class Approval(WireModel):
    approved: bool = False
    approved_at: Optional[datetime] = Field(None, alias="approvedAt")
    feedback: Optional[str] = None


class Signature(WireModel):
    signed: bool = False
    signed_at: Optional[datetime] = Field(None, alias="signedAt")
    signed_by: Optional[str] = Field(None, alias="signedBy")
    signature_text: Optional[str] = Field(None, alias="signatureText")
    signature_image: Optional[str] = Field(None, alias="signatureImage")
    verification_code: Optional[str] = Field(None, alias="verificationCode")


class Approvals(WireModel):
    landlord: Approval = Field(default_factory=Approval)
    tenant: Approval = Field(default_factory=Approval)

    @property
    def both_approved(self) -> bool:
        return self.landlord.approved and self.tenant.approved

    def for_party(self, party: Party) -> Optional[Approval]:
        if party == Party.LANDLORD:
            return self.landlord
        if party == Party.TENANT:
            return self.tenant
        return None


class Signatures(WireModel):
    landlord: Signature = Field(default_factory=Signature)
    tenant: Signature = Field(default_factory=Signature)
    witness: Signature = Field(default_factory=Signature)

    def for_party(self, party: Party) -> Signature:
        return getattr(self, party.value)


class StatusChange(WireModel):
    status: str
    changed_at: Optional[datetime] = Field(None, alias="changedAt")
    changed_by: Optional[str] = Field(None, alias="changedBy")
    reason: Optional[str] = None

    @field_validator("changed_by", mode="before")
    @classmethod
    def _normalize_changed_by(cls, value):
        return _ref_id(value)


class StatusRecord(WireModel):
    """The fine-grained ``contractStatus`` block"""
    current: Optional[str] = None
    history: List[StatusChange] = []
    last_updated: Optional[datetime] = Field(None, alias="lastUpdated")


class Contract(WireModel):
    """A rental contract snapshot"""
    contract_id: str = Field(..., alias="contractId")
    id: Optional[str] = Field(None, alias="_id")
    property_id: Optional[str] = Field(None, alias="propertyId")
    property_title: Optional[str] = None
    landlord_id: str = Field(..., alias="landlordId")
    tenant_id: str = Field(..., alias="tenantId")

    status: Optional[str] = None
    contract_status: Optional[StatusRecord] = Field(None, alias="contractStatus")
    approvals: Approvals = Field(default_factory=Approvals)
    signatures: Signatures = Field(default_factory=Signatures)

    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")
    monthly_rent: float = Field(0, alias="monthlyRent")
    security_deposit: float = Field(0, alias="securityDeposit")
    maintenance_charges: float = Field(0, alias="maintenanceCharges")

    property_address: str = Field("", alias="propertyAddress")
    terms: str = ""
    conditions: str = ""
    place_of_execution: str = Field("", alias="placeOfExecution")

    landlord_details: PartyDetails = Field(default_factory=PartyDetails, alias="landlordDetails")
    tenant_details: PartyDetails = Field(default_factory=PartyDetails, alias="tenantDetails")
    landlord_father_name: str = Field("", alias="landlordFatherName")
    tenant_father_name: str = Field("", alias="tenantFatherName")
    tenant_occupation: str = Field("", alias="tenantOccupation")
    witness_name: str = Field("", alias="witnessName")
    witness_address: str = Field("", alias="witnessAddress")

    bedrooms: int = 0
    fans: int = 0
    lights: int = 0
    geysers: int = 0
    mirrors: int = 0
    taps: int = 0

    digital_hash: Optional[str] = Field(None, alias="digitalHash")
    pdf_url: Optional[str] = Field(None, alias="pdfUrl")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("landlord_id", "tenant_id", "property_id", mode="before")
    @classmethod
    def _normalize_refs(cls, value):
        ref = _ref_id(value)
        return str(ref) if ref is not None else None

    @field_validator("contract_status", mode="before")
    @classmethod
    def _wrap_bare_status(cls, value):
        # Older records store contractStatus as a plain string
        if isinstance(value, str):
            return {"current": value}
        return value

    @classmethod
    def from_api(cls, data: dict) -> "Contract":
        """Build from a backend document, keeping the populated property title."""
        contract = cls.model_validate(data)
        prop = data.get("propertyId")
        if isinstance(prop, dict) and prop.get("title"):
            contract.property_title = prop["title"]
        return contract

    @property
    def landlord_name(self) -> str:
        return self.landlord_details.name or "Landlord"

    @property
    def tenant_name(self) -> str:
        return self.tenant_details.name or "Tenant"

    @property
    def duration_months(self) -> int:
        if not self.start_date or not self.end_date:
            return 0
        days = (self.end_date - self.start_date).total_seconds() / 86400
        return max(0, math.ceil(days / 30))

    @property
    def total_value(self) -> float:
        return self.monthly_rent * self.duration_months + self.security_deposit

    @property
    def is_fully_signed(self) -> bool:
        witness_done = self.signatures.witness.signed if self.witness_name else True
        return self.signatures.landlord.signed and self.signatures.tenant.signed and witness_done

    @property
    def next_required_signature(self) -> Optional[Party]:
        if not self.signatures.landlord.signed:
            return Party.LANDLORD
        if not self.signatures.tenant.signed:
            return Party.TENANT
        if self.witness_name and not self.signatures.witness.signed:
            return Party.WITNESS
        return None


class StatusReport(WireModel):
    """Signature progress and status history from ``GET /contract/<id>/status``"""
    contract_id: str = Field(..., alias="contractId")
    current_status: Optional[str] = Field(None, alias="currentStatus")
    is_fully_signed: bool = Field(False, alias="isFullySigned")
    next_signature: Optional[Party] = Field(None, alias="nextSignature")
    status_history: List[StatusChange] = Field(default_factory=list, alias="statusHistory")

    @field_validator("next_signature", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        return value or None
