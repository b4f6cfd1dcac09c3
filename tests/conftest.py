"""Pytest configuration and fixtures"""

import pytest

from rental_contracts.models.chat import Chat, ChatMessage
from rental_contracts.models.contract import Contract, StatusReport
from rental_contracts.models.user import User, UserRole
from rental_contracts.services import evaluator
from rental_contracts.services.api_client import APIError
from rental_contracts.utils.config import Settings

LANDLORD_ID = "u-landlord"
TENANT_ID = "u-tenant"
SIGNATURE_PNG = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="


@pytest.fixture(autouse=True)
def test_env(tmp_path, monkeypatch):
    """Isolated environment: no real backend, downloads under tmp_path"""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("API_BASE_URL", "http://backend.test/api")
    monkeypatch.setenv("SOCKET_URL", "http://backend.test")
    monkeypatch.setenv("API_TOKEN", "test-token")
    monkeypatch.setenv("USER_ID", LANDLORD_ID)
    monkeypatch.setenv("USER_NAME", "Asha Landlord")
    monkeypatch.setenv("USER_ROLE", "seller")
    monkeypatch.setenv("DOWNLOAD_DIR", str(tmp_path / "downloads"))
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "5")

    yield


def contract_doc(
    contract_id: str = "RC-1001",
    status: str = "pending_approval",
    current=None,
    landlord_approved: bool = False,
    tenant_approved: bool = False,
    landlord_signed: bool = False,
    tenant_signed: bool = False,
    **extra,
) -> dict:
    """Backend-shaped contract document"""
    doc = {
        "_id": f"doc-{contract_id}",
        "contractId": contract_id,
        "propertyId": {"_id": "p-1", "title": "2BHK near the lake"},
        "landlordId": {"_id": LANDLORD_ID, "name": "Asha Landlord"},
        "tenantId": TENANT_ID,
        "status": status,
        "approvals": {
            "landlord": {"approved": landlord_approved},
            "tenant": {"approved": tenant_approved},
        },
        "signatures": {
            "landlord": {"signed": landlord_signed},
            "tenant": {"signed": tenant_signed},
            "witness": {"signed": False},
        },
        "startDate": "2025-01-01T00:00:00.000Z",
        "endDate": "2025-12-31T00:00:00.000Z",
        "monthlyRent": 15000,
        "securityDeposit": 30000,
        "maintenanceCharges": 500,
        "propertyAddress": "12 Lake Road, Pune",
        "terms": "Rent is due on the 5th of every month.",
        "landlordDetails": {"name": "Asha Landlord", "email": "asha@example.com", "phone": "9000000001", "address": "Pune"},
        "tenantDetails": {"name": "Ravi Tenant", "email": "ravi@example.com", "phone": "9000000002", "address": "Mumbai"},
    }
    if current is not None:
        doc["contractStatus"] = {"current": current, "history": []}
    doc.update(extra)
    return doc


def make_contract(**kwargs) -> Contract:
    return Contract.from_api(contract_doc(**kwargs))


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def landlord():
    return User(_id=LANDLORD_ID, name="Asha Landlord", role=UserRole.SELLER)


@pytest.fixture
def tenant():
    return User(_id=TENANT_ID, name="Ravi Tenant", role=UserRole.BUYER)


@pytest.fixture
def stranger():
    return User(_id="u-stranger", name="Someone Else", role=UserRole.BUYER)


@pytest.fixture
def admin():
    return User(_id="u-admin", name="Admin", role=UserRole.ADMIN)


class FakeBackend:
    """Duck-typed ContractAPIClient holding contract documents in a dict"""

    def __init__(self, settings, *docs):
        self.settings = settings
        self.docs = {d["contractId"]: d for d in docs}
        self.calls = []
        # Identity the bearer token stands for
        self.user_id = getattr(settings, "user_id", None)
        self.stored_signature = None

    async def get_contract(self, contract_id):
        self.calls.append(("get", contract_id))
        if contract_id not in self.docs:
            raise APIError("Contract not found", status=404)
        return Contract.from_api(self.docs[contract_id])

    async def approve(self, contract_id, feedback=""):
        self.calls.append(("approve", contract_id))
        doc = self.docs[contract_id]
        doc["approvals"]["landlord"]["approved"] = True
        return Contract.from_api(doc)

    async def reject(self, contract_id, feedback=""):
        self.calls.append(("reject", contract_id))
        self.docs[contract_id]["status"] = "rejected"
        return Contract.from_api(self.docs[contract_id])

    async def sign(self, contract_id, signature_text, signature_image=None, use_stored_signature=False):
        self.calls.append(("sign", contract_id, signature_text, signature_image, use_stored_signature))
        doc = self.docs[contract_id]
        role = "landlord" if doc["landlordId"]["_id"] == self.user_id else "tenant"
        doc["signatures"][role] = {"signed": True, "signatureText": signature_text,
                                   "signatureImage": signature_image}

        # Same transitions as the backend: it writes contractStatus.current only
        if role == "landlord":
            new_status = "pending_tenant_signature"
        elif doc.get("witnessName") and not doc["signatures"]["witness"]["signed"]:
            new_status = "pending_witness_signature"
        else:
            new_status = "fully_signed"
        doc["contractStatus"] = {"current": new_status, "history": []}
        return {"message": "Contract signed successfully",
                "contract": {"contractId": contract_id, "status": new_status, "signatures": doc["signatures"]}}

    async def delete_contract(self, contract_id):
        self.calls.append(("delete", contract_id))
        del self.docs[contract_id]
        return {"message": "Contract deleted"}

    async def download_pdf(self, contract_id):
        self.calls.append(("pdf", contract_id))
        return b"%PDF-1.4 fake"

    async def send_reminder(self, contract_id, recipient_role):
        self.calls.append(("remind", contract_id, recipient_role))
        return {"message": "Reminder sent"}

    async def my_contracts(self):
        self.calls.append(("my",))
        return [Contract.from_api(d) for d in self.docs.values()]

    async def contracts_for_property(self, property_id):
        self.calls.append(("property", property_id))
        return [Contract.from_api(d) for d in self.docs.values()
                if d["propertyId"]["_id"] == property_id]

    async def create_contract(self, payload):
        self.calls.append(("create", payload))
        return {"message": "Contract created", "contract": payload}

    async def update_contract(self, contract_id, payload):
        self.calls.append(("update", contract_id, payload))
        doc = self.docs[contract_id]
        doc.update(payload)
        for field in ("startDate", "endDate"):
            doc[field] = f"{payload[field]}T00:00:00.000Z"
        return Contract.from_api(doc)

    async def upload_document(self, contract_id, filename, content, document_type, user_role):
        self.calls.append(("upload", contract_id, filename, document_type, user_role))
        return {"message": "Document uploaded successfully", "documentUrl": f"/uploads/contracts/{filename}"}

    async def contract_status(self, contract_id):
        self.calls.append(("status", contract_id))
        contract = Contract.from_api(self.docs[contract_id])
        return StatusReport.model_validate({
            "contractId": contract_id,
            "currentStatus": evaluator.resolve_status(contract).value,
            "isFullySigned": contract.is_fully_signed,
            "nextSignature": contract.next_required_signature,
            "statusHistory": [
                {"status": "pending_approval", "changedAt": "2025-01-01T10:00:00Z", "reason": "Contract created"},
            ],
        })

    async def verify_contract(self, contract_id, digital_hash):
        self.calls.append(("verify", contract_id, digital_hash))
        doc = self.docs[contract_id]
        valid = doc.get("digitalHash") == digital_hash
        return {
            "message": "Contract verification successful" if valid else "Contract verification failed",
            "verification": {"contractId": contract_id, "isValid": valid,
                             "landlordName": doc["landlordDetails"]["name"],
                             "tenantName": doc["tenantDetails"]["name"],
                             "propertyAddress": doc["propertyAddress"]},
        }

    async def get_stored_signature(self):
        self.calls.append(("get_signature",))
        return self.stored_signature

    async def save_signature(self, signature_image):
        self.calls.append(("save_signature", signature_image))
        self.stored_signature = signature_image
        return {"message": "Signature saved successfully", "hasSignature": True}

    async def initiate_chat(self, property_id, participant_id):
        self.calls.append(("chat", property_id, participant_id))
        return Chat.model_validate({"_id": f"chat-{property_id}", "property": property_id,
                                    "participants": [self.user_id, participant_id], "messages": []})

    async def send_message(self, chat_id, text):
        self.calls.append(("message", chat_id, text))
        return ChatMessage.model_validate({"_id": "m-1", "sender": self.user_id, "text": text})
