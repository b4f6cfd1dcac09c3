"""Contract actions: approve, reject, sign, edit, delete, download, remind and document upload.

Each action checks the evaluator first, so a caller can never perform
something whose button would be hidden, then calls the backend and brings
the local board up to date.
"""

import logging
from pathlib import Path
from typing import Optional

from rental_contracts.models.contract import Contract, Party, Signatures, StatusRecord
from rental_contracts.models.user import User
from rental_contracts.services import evaluator
from rental_contracts.services.api_client import APIError, ContractAPIClient
from rental_contracts.services.board import ContractBoard
from rental_contracts.services.pdf_generator import ContractPDFGenerator
from rental_contracts.services.validation import ContractUpdate, validate_signature_image
from rental_contracts.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class ActionNotPermitted(ValueError):
    """The user may not perform this action on the contract in its current state"""

    def __init__(self, action: str, contract_id: str):
        super().__init__(f"Cannot {action} contract {contract_id} in its current state")
        self.action = action
        self.contract_id = contract_id


# documents.<party>.<type> slots on the contract
DOCUMENT_TYPES = {
    Party.TENANT: ("aadhaar", "pan", "idProof", "bankPassbook", "photo"),
    Party.LANDLORD: ("propertyOwnership", "propertyRegistration", "photo"),
}


def pdf_filename(contract_id: str) -> str:
    return f"Rental_Contract_{contract_id}.pdf"


class ContractActions:
    """Performs contract actions on behalf of one user."""

    def __init__(
        self,
        client: ContractAPIClient,
        user: User,
        board: Optional[ContractBoard] = None,
        settings: Optional[Settings] = None,
    ):
        self.client = client
        self.user = user
        self.board = board or ContractBoard()
        self.settings = settings or get_settings()

    def _require(self, allowed: bool, action: str, contract: Contract) -> None:
        if not allowed:
            raise ActionNotPermitted(action, contract.contract_id)

    async def load(self, contract_id: str) -> Contract:
        """Fetch a contract and show it wherever the board already lists it."""
        contract = await self.client.get_contract(contract_id)
        self.board.upsert(contract)
        return contract

    async def _refetch(self, fallback: Contract) -> Contract:
        try:
            return await self.load(fallback.contract_id)
        except APIError as e:
            logger.warning(f"Refetch of {fallback.contract_id} failed, keeping merged copy: {e}")
            return fallback

    async def approve(self, contract: Contract, feedback: str = "") -> Contract:
        self._require(evaluator.can_approve(contract, self.user), "approve", contract)
        updated = await self.client.approve(contract.contract_id, feedback)
        logger.info(f"Contract {contract.contract_id} approved by {self.user.id}")
        if updated is not None:
            self.board.upsert(updated)
        return await self._refetch(updated or contract)

    async def reject(self, contract: Contract, feedback: str = "") -> Contract:
        self._require(evaluator.can_reject(contract, self.user), "reject", contract)
        updated = await self.client.reject(contract.contract_id, feedback)
        logger.info(f"Contract {contract.contract_id} rejected by {self.user.id}")
        if updated is not None:
            self.board.upsert(updated)
        return await self._refetch(updated or contract)

    async def sign(
        self,
        contract: Contract,
        signature_image: Optional[str] = None,
        signature_text: Optional[str] = None,
        use_stored_signature: bool = False,
    ) -> Contract:
        """Sign as the user's party.

        Without ``use_stored_signature`` an image is mandatory; a blank one
        raises ``SignatureRequired`` before anything is sent.
        """
        self._require(evaluator.can_sign(contract, self.user), "sign", contract)
        if not use_stored_signature:
            signature_image = validate_signature_image(signature_image)
        text = signature_text or f"Signed electronically by {self.user.name}"

        body = await self.client.sign(
            contract.contract_id,
            text,
            signature_image=signature_image,
            use_stored_signature=use_stored_signature,
        )
        party = evaluator.party_for(contract, self.user)
        logger.info(f"Contract {contract.contract_id} signed by {party.value}")

        merged = self._merge_signed(contract, body)
        self.board.upsert(merged)
        return await self._refetch(merged)

    @staticmethod
    def _merge_signed(contract: Contract, body) -> Contract:
        # Sign responses carry only contractId, status and signatures
        partial = body.get("contract") if isinstance(body, dict) else None
        if not isinstance(partial, dict):
            return contract
        update = {}
        if partial.get("status"):
            # The backend reports its contractStatus.current value here
            record = contract.contract_status or StatusRecord()
            update["contract_status"] = record.model_copy(update={"current": partial["status"]})
        if isinstance(partial.get("signatures"), dict):
            update["signatures"] = Signatures.model_validate(partial["signatures"])
        return contract.model_copy(update=update)

    async def edit(self, contract: Contract, update: ContractUpdate) -> Contract:
        """Save edited details. Changing a party's details clears that party's signature."""
        self._require(evaluator.can_edit(contract, self.user), "edit", contract)
        updated = await self.client.update_contract(contract.contract_id, update.to_payload())
        logger.info(f"Contract {contract.contract_id} edited by {self.user.id}")
        if updated is not None:
            self.board.upsert(updated)
        return await self._refetch(updated or contract)

    async def upload_document(self, contract: Contract, path: Path, document_type: str) -> str:
        """Attach a KYC or ownership document for the user's party. Returns its URL."""
        party = evaluator.party_for(contract, self.user)
        self._require(party is not None, "upload a document for", contract)
        allowed = DOCUMENT_TYPES[party]
        if document_type not in allowed:
            raise ValueError(f"Unknown {party.value} document type '{document_type}'; use one of: {', '.join(allowed)}")

        body = await self.client.upload_document(
            contract.contract_id, path.name, path.read_bytes(), document_type, party.value
        )
        logger.info(f"Uploaded {document_type} for {contract.contract_id} as {party.value}")
        return body.get("documentUrl", "") if isinstance(body, dict) else ""

    async def delete(self, contract: Contract) -> None:
        self._require(evaluator.can_delete(contract, self.user), "delete", contract)
        await self.client.delete_contract(contract.contract_id)
        self.board.remove(contract.contract_id)
        logger.info(f"Contract {contract.contract_id} deleted by {self.user.id}")

    async def pdf_bytes(self, contract: Contract, local: bool = False) -> bytes:
        """Backend-rendered PDF, or a local reportlab rendering with ``local``."""
        self._require(evaluator.can_download(contract, self.user), "download", contract)
        if local:
            return ContractPDFGenerator().render(contract)
        return await self.client.download_pdf(contract.contract_id)

    async def download_pdf(self, contract: Contract, dest_dir: Optional[str] = None, local: bool = False) -> Path:
        """Save the contract PDF and return its path."""
        content = await self.pdf_bytes(contract, local=local)

        out_dir = Path(dest_dir or self.settings.download_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / pdf_filename(contract.contract_id)
        path.write_bytes(content)
        logger.info(f"PDF saved: {path} ({len(content)} bytes)")
        return path

    async def send_reminder(self, contract: Contract) -> str:
        """Remind the counterparty to sign. Returns the recipient's party."""
        self._require(evaluator.can_send_reminder(contract, self.user), "send a reminder for", contract)
        recipient = evaluator.reminder_recipient(contract, self.user)
        await self.client.send_reminder(contract.contract_id, recipient.value)
        logger.info(f"Reminder for {contract.contract_id} sent to {recipient.value}")
        return recipient.value
