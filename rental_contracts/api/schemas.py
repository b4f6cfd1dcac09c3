"""Request/response schemas for the contract view service"""

from typing import Optional

from pydantic import BaseModel, Field

from rental_contracts.models.chat import Chat, ChatMessage
from rental_contracts.models.contract import Contract
from rental_contracts.models.permissions import ContractPermissions


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    backend: str


class ContractCard(BaseModel):
    """A contract with its badge and the caller's permitted actions"""
    contract: Contract
    permissions: ContractPermissions


class ContractListResponse(BaseModel):
    contracts: list[ContractCard] = []


class ActionRequest(BaseModel):
    """Body of approve / reject"""
    feedback: str = Field("", max_length=2000)


class SignRequest(BaseModel):
    signature_image: Optional[str] = Field(None, description="Data URL of the drawn signature")
    signature_text: Optional[str] = None
    use_stored_signature: bool = False


class ReminderResponse(BaseModel):
    contract_id: str
    recipient: str


class DeleteResponse(BaseModel):
    contract_id: str
    deleted: bool = True


# =========================================================
# Chat
# =========================================================

class ChatListResponse(BaseModel):
    chats: list[Chat] = []


class ChatMessagesResponse(BaseModel):
    chat_id: str
    messages: list[ChatMessage] = []


class UnreadCountResponse(BaseModel):
    count: int = 0
