"""Tests for the contract wire model"""

from conftest import contract_doc, make_contract, LANDLORD_ID
from rental_contracts.models.chat import Chat
from rental_contracts.models.contract import Contract, Party


def test_populated_references_are_normalized():
    contract = make_contract()
    assert contract.landlord_id == LANDLORD_ID
    assert contract.property_id == "p-1"
    assert contract.property_title == "2BHK near the lake"


def test_unknown_fields_are_ignored():
    contract = Contract.from_api(contract_doc(**{"__v": 3, "someNewField": {"x": 1}}))
    assert contract.contract_id == "RC-1001"


def test_duration_and_total_value():
    contract = make_contract(startDate="2025-01-01", endDate="2025-03-02")
    assert contract.duration_months == 2
    assert contract.total_value == 15000 * 2 + 30000


def test_next_required_signature_order():
    assert make_contract().next_required_signature == Party.LANDLORD
    assert make_contract(landlord_signed=True).next_required_signature == Party.TENANT
    assert make_contract(landlord_signed=True, tenant_signed=True).next_required_signature is None

    with_witness = make_contract(landlord_signed=True, tenant_signed=True, witnessName="Meera")
    assert with_witness.next_required_signature == Party.WITNESS
    assert not with_witness.is_fully_signed


def test_status_history_changed_by_reference():
    contract = make_contract(contractStatus={
        "current": "pending_approval",
        "history": [{"status": "draft", "changedBy": {"_id": LANDLORD_ID}}],
    })
    assert contract.contract_status.history[0].changed_by == LANDLORD_ID


def test_chat_other_participant():
    chat = Chat.model_validate({
        "_id": "c-1",
        "property": {"_id": "p-1"},
        "participants": [{"_id": LANDLORD_ID, "name": "Asha"}, "u-tenant"],
        "messages": [{"sender": {"_id": "u-tenant"}, "text": "Hi"}],
    })
    assert chat.property == "p-1"
    assert chat.other_participant(LANDLORD_ID).id == "u-tenant"
    assert chat.messages[0].sender == "u-tenant"
