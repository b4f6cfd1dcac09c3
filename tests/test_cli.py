"""Tests for the command line"""

import json

import pytest
from typer.testing import CliRunner

from conftest import FakeBackend, contract_doc
from rental_contracts.cli import main as cli_main

runner = CliRunner()


@pytest.fixture
def backend(monkeypatch):
    """Route every CLI call to one in-memory backend"""
    docs = [
        contract_doc(),
        contract_doc(contract_id="RC-2", status="pending_tenant_signature",
                     landlord_approved=True, tenant_approved=True, landlord_signed=True),
    ]
    backend = None

    class Client(FakeBackend):
        def __init__(self, settings=None):
            super().__init__(settings, *docs)
            nonlocal backend
            backend = self

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            pass

    monkeypatch.setattr(cli_main, "ContractAPIClient", Client)
    return lambda: backend


def test_contracts_json(backend):
    result = runner.invoke(cli_main.app, ["contracts", "--json"])
    assert result.exit_code == 0, result.output

    cards = json.loads(result.output)
    assert [c["contract"]["contractId"] for c in cards] == ["RC-1001", "RC-2"]
    assert cards[0]["actions"] == ["approve", "reject", "edit", "pdf", "delete"]
    assert cards[1]["actions"] == ["remind", "pdf", "delete"]


def test_contracts_table(backend, monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    result = runner.invoke(cli_main.app, ["contracts"])
    assert result.exit_code == 0, result.output
    assert "RC-1001" in result.output


def test_show_json(backend):
    result = runner.invoke(cli_main.app, ["show", "RC-2", "--json"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["permissions"]["badge"]["text"] == "APPROVED - PENDING SIGNATURES"


def test_approve(backend):
    result = runner.invoke(cli_main.app, ["approve", "RC-1001"])
    assert result.exit_code == 0, result.output
    assert backend().docs["RC-1001"]["approvals"]["landlord"]["approved"] is True


def test_landlord_cannot_sign_out_of_turn(backend):
    result = runner.invoke(cli_main.app, ["sign", "RC-2", "--stored"])
    assert result.exit_code == 1
    assert "Cannot sign" in result.output


def test_sign_without_image_is_refused(backend, monkeypatch):
    monkeypatch.setenv("USER_ID", "u-tenant")
    monkeypatch.setenv("USER_ROLE", "buyer")
    result = runner.invoke(cli_main.app, ["sign", "RC-2"])
    assert result.exit_code == 1
    assert "Signature is required." in result.output
    assert not any(call[0] == "sign" for call in backend().calls)


def test_sign_with_image_file(backend, monkeypatch, tmp_path):
    monkeypatch.setenv("USER_ID", "u-tenant")
    monkeypatch.setenv("USER_ROLE", "buyer")
    image = tmp_path / "signature.png"
    image.write_bytes(b"\x89PNG\r\n\x1a\nfake")

    result = runner.invoke(cli_main.app, ["sign", "RC-2", "--image", str(image)])
    assert result.exit_code == 0, result.output
    sign_call = next(call for call in backend().calls if call[0] == "sign")
    assert sign_call[3].startswith("data:image/png;base64,")


def test_delete_requires_confirmation(backend):
    result = runner.invoke(cli_main.app, ["delete", "RC-1001"], input="n\n")
    assert result.exit_code != 0
    assert backend() is None

    result = runner.invoke(cli_main.app, ["delete", "RC-1001", "--yes"])
    assert result.exit_code == 0, result.output
    assert "RC-1001" not in backend().docs


def test_pdf_download(backend, tmp_path):
    result = runner.invoke(cli_main.app, ["pdf", "RC-1001", "--output", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "Rental_Contract_RC-1001.pdf").read_bytes().startswith(b"%PDF")


def test_remind(backend):
    result = runner.invoke(cli_main.app, ["remind", "RC-2"])
    assert result.exit_code == 0, result.output
    assert ("remind", "RC-2", "tenant") in backend().calls


def test_missing_user_id(backend, monkeypatch):
    monkeypatch.delenv("USER_ID")
    result = runner.invoke(cli_main.app, ["contracts"])
    assert result.exit_code == 1
    assert "USER_ID" in result.output


def test_create_rejects_invalid_form(backend, tmp_path):
    form_file = tmp_path / "form.json"
    form_file.write_text(json.dumps({"tenantName": "Ravi"}), encoding="utf-8")

    result = runner.invoke(cli_main.app, ["create", str(form_file), "--property", "p-1", "--tenant", "u-tenant"])
    assert result.exit_code == 1
    assert backend() is None


def test_create_posts_payload(backend, tmp_path):
    form = {
        "propertyAddress": "12 Lake Road", "tenantName": "Ravi", "tenantEmail": "r@example.com",
        "tenantPhone": "1", "tenantAddress": "Mumbai", "landlordName": "Asha",
        "landlordEmail": "a@example.com", "landlordPhone": "2", "landlordAddress": "Pune",
        "startDate": "2025-01-01", "endDate": "2025-06-30", "monthlyRent": 15000,
        "securityDeposit": 30000, "maintenanceCharges": 500, "bedrooms": 2, "fans": 2,
        "lights": 4, "geysers": 1, "mirrors": 1, "taps": 2, "landlordFatherName": "Suresh",
        "tenantFatherName": "Mohan", "tenantOccupation": "Engineer", "terms": "Standard terms",
        "placeOfExecution": "Pune", "contractId": "RENT-1-1",
    }
    form_file = tmp_path / "form.json"
    form_file.write_text(json.dumps(form), encoding="utf-8")

    result = runner.invoke(cli_main.app, ["create", str(form_file), "--property", "p-1", "--tenant", "u-tenant"])
    assert result.exit_code == 0, result.output
    payload = backend().calls[0][1]
    assert payload["contractId"] == "RENT-1-1"
    assert payload["propertyId"] == "p-1"
    assert payload["landlordDetails"]["name"] == "Asha"


def test_edit_sends_merged_details(backend, tmp_path):
    changes = tmp_path / "changes.json"
    changes.write_text(json.dumps({"monthlyRent": 16000, "tenantPhone": "9000000009"}), encoding="utf-8")

    result = runner.invoke(cli_main.app, ["edit", "RC-1001", str(changes)])
    assert result.exit_code == 0, result.output
    update = next(call for call in backend().calls if call[0] == "update")
    assert update[2]["monthlyRent"] == 16000
    assert update[2]["tenantDetails"]["phone"] == "9000000009"
    assert update[2]["tenantDetails"]["name"] == "Ravi Tenant"
    assert update[2]["startDate"] == "2025-01-01"


def test_edit_rejects_blank_required_field(backend, tmp_path):
    changes = tmp_path / "changes.json"
    changes.write_text(json.dumps({"propertyAddress": "  "}), encoding="utf-8")

    result = runner.invoke(cli_main.app, ["edit", "RC-1001", str(changes)])
    assert result.exit_code == 1
    assert not any(call[0] == "update" for call in backend().calls)


def test_edit_closed_after_first_signature(backend, tmp_path):
    changes = tmp_path / "changes.json"
    changes.write_text(json.dumps({"monthlyRent": 16000}), encoding="utf-8")

    result = runner.invoke(cli_main.app, ["edit", "RC-2", str(changes)])
    assert result.exit_code == 1
    assert "Cannot edit" in result.output


def test_upload_document_as_landlord(backend, tmp_path):
    deed = tmp_path / "deed.pdf"
    deed.write_bytes(b"%PDF-1.4 deed")

    result = runner.invoke(cli_main.app, ["upload", "RC-1001", str(deed), "--type", "propertyOwnership"])
    assert result.exit_code == 0, result.output
    assert ("upload", "RC-1001", "deed.pdf", "propertyOwnership", "landlord") in backend().calls


def test_upload_rejects_other_party_document_type(backend, tmp_path):
    scan = tmp_path / "aadhaar.png"
    scan.write_bytes(b"\x89PNG")

    result = runner.invoke(cli_main.app, ["upload", "RC-1001", str(scan), "--type", "aadhaar"])
    assert result.exit_code == 1
    assert "Unknown landlord document type" in result.output


def test_history_json(backend):
    result = runner.invoke(cli_main.app, ["history", "RC-2", "--json"])
    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["currentStatus"] == "pending_tenant_signature"
    assert report["nextSignature"] == "tenant"
    assert report["statusHistory"][0]["status"] == "pending_approval"


def test_verify(backend):
    result = runner.invoke(cli_main.app, ["verify", "RC-1001", "wrong-hash"])
    assert result.exit_code == 1
    assert "verification failed" in result.output

    backend().docs["RC-1001"]["digitalHash"] = "abc123"
    result = runner.invoke(cli_main.app, ["verify", "RC-1001", "abc123"])
    assert result.exit_code == 0, result.output
    assert "verification successful" in result.output


def test_signature_show_then_save(backend, tmp_path):
    result = runner.invoke(cli_main.app, ["signature"])
    assert result.exit_code == 0, result.output
    assert "No stored signature" in result.output

    image = tmp_path / "signature.png"
    image.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    result = runner.invoke(cli_main.app, ["signature", "--save", str(image)])
    assert result.exit_code == 0, result.output
    saved = next(call for call in backend().calls if call[0] == "save_signature")
    assert saved[1].startswith("data:image/png;base64,")


def test_chat_opens_and_sends(backend):
    result = runner.invoke(cli_main.app, ["chat", "p-1", "u-tenant", "--message", "Hello"])
    assert result.exit_code == 0, result.output
    assert ("chat", "p-1", "u-tenant") in backend().calls
    assert ("message", "chat-p-1", "Hello") in backend().calls
