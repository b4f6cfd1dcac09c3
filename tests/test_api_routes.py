"""Tests for the contract view API"""

from typing import Optional

import pytest
from fastapi import Header
from fastapi.testclient import TestClient

from conftest import LANDLORD_ID, TENANT_ID, FakeBackend, contract_doc
from rental_contracts.api.app import create_app
from rental_contracts.api.deps import _bearer, get_client
from rental_contracts.utils.config import Settings

AS_LANDLORD = {"Authorization": "Bearer landlord-token", "X-User-Id": LANDLORD_ID, "X-User-Role": "seller"}
AS_TENANT = {"Authorization": "Bearer tenant-token", "X-User-Id": TENANT_ID, "X-User-Name": "Ravi Tenant"}
AS_STRANGER = {"Authorization": "Bearer stranger-token", "X-User-Id": "u-stranger"}


@pytest.fixture
def backend():
    return FakeBackend(
        Settings(),
        contract_doc(),
        contract_doc(contract_id="RC-2", propertyId={"_id": "p-2", "title": "Studio"},
                     status="pending_tenant_signature", landlord_approved=True,
                     tenant_approved=True, landlord_signed=True),
    )


@pytest.fixture
def client(backend):
    def backend_for_caller(authorization: Optional[str] = Header(None), x_user_id: Optional[str] = Header(None)):
        # The fake backend acts as whoever the token belongs to
        backend.token = _bearer(authorization)
        backend.user_id = x_user_id
        return backend

    app = create_app()
    app.dependency_overrides[get_client] = backend_for_caller
    return TestClient(app)


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["backend"] == "http://backend.test/api"


def test_list_contracts_for_tenant(client):
    response = client.get("/api/contracts", headers=AS_TENANT)
    assert response.status_code == 200

    cards = {c["contract"]["contractId"]: c for c in response.json()["contracts"]}
    assert cards["RC-1001"]["permissions"]["can_approve"] is True
    assert cards["RC-1001"]["permissions"]["badge"]["text"] == "PENDING APPROVAL"
    assert cards["RC-2"]["permissions"]["can_sign"] is True
    assert cards["RC-2"]["permissions"]["party"] == "tenant"


def test_list_contracts_for_property(client, backend):
    response = client.get("/api/contracts", params={"property_id": "p-2"}, headers=AS_TENANT)
    assert [c["contract"]["contractId"] for c in response.json()["contracts"]] == ["RC-2"]
    assert ("property", "p-2") in backend.calls


def test_request_without_credentials_is_401(client, backend):
    response = client.get("/api/contracts/RC-1001")
    assert response.status_code == 401
    assert backend.calls == []


def test_caller_token_is_forwarded(client, backend):
    client.get("/api/contracts/RC-1001", headers=AS_TENANT)
    assert backend.token == "tenant-token"


def test_missing_token_never_falls_back_to_configured_one():
    client = TestClient(create_app())
    response = client.get("/api/contracts", headers={"X-User-Id": TENANT_ID})
    assert response.status_code == 401
    assert response.json()["detail"] == "Missing Authorization header"


def test_missing_user_id_is_401():
    client = TestClient(create_app())
    response = client.get("/api/contracts", headers={"Authorization": "Bearer tenant-token"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Missing X-User-Id header"


def test_missing_contract_is_404(client):
    response = client.get("/api/contracts/nope", headers=AS_TENANT)
    assert response.status_code == 404
    assert response.json()["detail"] == "Contract not found"


def test_landlord_approves(client):
    response = client.post("/api/contracts/RC-1001/approve", json={"feedback": "ok"}, headers=AS_LANDLORD)
    assert response.status_code == 200
    body = response.json()
    assert body["contract"]["approvals"]["landlord"]["approved"] is True
    assert body["permissions"]["can_approve"] is False
    assert body["permissions"]["badge"]["text"] == "PARTIALLY APPROVED"


def test_stranger_cannot_approve(client, backend):
    response = client.post("/api/contracts/RC-1001/approve", headers=AS_STRANGER)
    assert response.status_code == 403
    assert ("approve", "RC-1001") not in backend.calls


def test_blank_signature_is_422(client, backend):
    response = client.post("/api/contracts/RC-2/sign", json={"signature_image": "  "}, headers=AS_TENANT)
    assert response.status_code == 422
    assert response.json()["detail"] == "Signature is required."
    assert not any(call[0] == "sign" for call in backend.calls)


def test_tenant_signs(client):
    response = client.post(
        "/api/contracts/RC-2/sign",
        json={"signature_image": "data:image/png;base64,AAAA"},
        headers=AS_TENANT,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["contract"]["signatures"]["tenant"]["signed"] is True
    assert body["permissions"]["badge"]["text"] == "FULLY SIGNED"
    assert body["permissions"]["can_sign"] is False


def test_remind(client):
    response = client.post("/api/contracts/RC-2/remind", headers=AS_LANDLORD)
    assert response.json() == {"contract_id": "RC-2", "recipient": "tenant"}


def test_delete(client, backend):
    assert client.delete("/api/contracts/RC-1001", headers=AS_TENANT).status_code == 403

    response = client.delete("/api/contracts/RC-1001", headers=AS_LANDLORD)
    assert response.status_code == 200
    assert response.json() == {"contract_id": "RC-1001", "deleted": True}
    assert "RC-1001" not in backend.docs


def test_pdf_download(client):
    response = client.get("/api/contracts/RC-1001/pdf", headers=AS_TENANT)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "Rental_Contract_RC-1001.pdf" in response.headers["content-disposition"]


def test_unknown_role_is_400(client):
    response = client.get("/api/contracts", headers={**AS_TENANT, "X-User-Role": "wizard"})
    assert response.status_code == 400


def test_malformed_authorization_is_401():
    client = TestClient(create_app())
    response = client.get("/api/contracts", headers={"Authorization": "Token abc", **AS_TENANT})
    assert response.status_code == 401
