"""Contract view routes: cards with badge and permitted actions, plus the actions themselves."""

import logging
from typing import Awaitable, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from rental_contracts.api.deps import get_client, get_user
from rental_contracts.api.schemas import (
    ActionRequest,
    ContractCard,
    ContractListResponse,
    DeleteResponse,
    ReminderResponse,
    SignRequest,
)
from rental_contracts.models.contract import Contract
from rental_contracts.models.user import User
from rental_contracts.services.actions import ActionNotPermitted, ContractActions, pdf_filename
from rental_contracts.services.api_client import APIError, ContractAPIClient
from rental_contracts.services.evaluator import evaluate
from rental_contracts.services.validation import SignatureRequired

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contracts", tags=["contracts"])

T = TypeVar("T")


async def _call(awaitable: Awaitable[T]) -> T:
    """Await a backend/action call, mapping domain errors to HTTP errors."""
    try:
        return await awaitable
    except ActionNotPermitted as e:
        raise HTTPException(status_code=403, detail=str(e))
    except SignatureRequired as e:
        raise HTTPException(status_code=422, detail=str(e))
    except APIError as e:
        logger.error(f"Backend error: {e.message} (status={e.status})")
        raise HTTPException(status_code=e.status or 502, detail=e.message)


def _card(contract: Contract, user: User) -> ContractCard:
    return ContractCard(contract=contract, permissions=evaluate(contract, user))


def _actions(client: ContractAPIClient, user: User) -> ContractActions:
    return ContractActions(client, user, settings=client.settings)


@router.get("", response_model=ContractListResponse)
async def list_contracts(
    property_id: Optional[str] = None,
    client: ContractAPIClient = Depends(get_client),
    user: User = Depends(get_user),
):
    """The caller's contracts, or those of one property."""
    if property_id:
        contracts = await _call(client.contracts_for_property(property_id))
    else:
        contracts = await _call(client.my_contracts())
    return ContractListResponse(contracts=[_card(c, user) for c in contracts])


@router.get("/{contract_id}", response_model=ContractCard)
async def get_contract(
    contract_id: str,
    client: ContractAPIClient = Depends(get_client),
    user: User = Depends(get_user),
):
    contract = await _call(client.get_contract(contract_id))
    return _card(contract, user)


@router.post("/{contract_id}/approve", response_model=ContractCard)
async def approve_contract(
    contract_id: str,
    request: ActionRequest = ActionRequest(),
    client: ContractAPIClient = Depends(get_client),
    user: User = Depends(get_user),
):
    contract = await _call(client.get_contract(contract_id))
    updated = await _call(_actions(client, user).approve(contract, request.feedback))
    return _card(updated, user)


@router.post("/{contract_id}/reject", response_model=ContractCard)
async def reject_contract(
    contract_id: str,
    request: ActionRequest = ActionRequest(),
    client: ContractAPIClient = Depends(get_client),
    user: User = Depends(get_user),
):
    contract = await _call(client.get_contract(contract_id))
    updated = await _call(_actions(client, user).reject(contract, request.feedback))
    return _card(updated, user)


@router.post("/{contract_id}/sign", response_model=ContractCard)
async def sign_contract(
    contract_id: str,
    request: SignRequest,
    client: ContractAPIClient = Depends(get_client),
    user: User = Depends(get_user),
):
    contract = await _call(client.get_contract(contract_id))
    updated = await _call(_actions(client, user).sign(
        contract,
        signature_image=request.signature_image,
        signature_text=request.signature_text,
        use_stored_signature=request.use_stored_signature,
    ))
    return _card(updated, user)


@router.post("/{contract_id}/remind", response_model=ReminderResponse)
async def send_reminder(
    contract_id: str,
    client: ContractAPIClient = Depends(get_client),
    user: User = Depends(get_user),
):
    contract = await _call(client.get_contract(contract_id))
    recipient = await _call(_actions(client, user).send_reminder(contract))
    return ReminderResponse(contract_id=contract_id, recipient=recipient)


@router.delete("/{contract_id}", response_model=DeleteResponse)
async def delete_contract(
    contract_id: str,
    client: ContractAPIClient = Depends(get_client),
    user: User = Depends(get_user),
):
    contract = await _call(client.get_contract(contract_id))
    await _call(_actions(client, user).delete(contract))
    return DeleteResponse(contract_id=contract_id)


@router.get("/{contract_id}/pdf")
async def download_pdf(
    contract_id: str,
    local: bool = False,
    client: ContractAPIClient = Depends(get_client),
    user: User = Depends(get_user),
):
    """Contract PDF from the backend, or rendered here with ``?local=true``."""
    contract = await _call(client.get_contract(contract_id))
    content = await _call(_actions(client, user).pdf_bytes(contract, local=local))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(contract_id)}"'},
    )
