"""Chat routes: read-only pass-through of the caller's property chats"""

from fastapi import APIRouter, Depends

from rental_contracts.api.deps import get_client
from rental_contracts.api.routes.contract import _call
from rental_contracts.api.schemas import ChatListResponse, ChatMessagesResponse, UnreadCountResponse
from rental_contracts.services.api_client import ContractAPIClient

router = APIRouter(prefix="/api/chats", tags=["chats"])


@router.get("", response_model=ChatListResponse)
async def list_chats(client: ContractAPIClient = Depends(get_client)):
    return ChatListResponse(chats=await _call(client.my_chats()))


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(client: ContractAPIClient = Depends(get_client)):
    return UnreadCountResponse(count=await _call(client.unread_count()))


@router.get("/{chat_id}/messages", response_model=ChatMessagesResponse)
async def chat_messages(chat_id: str, client: ContractAPIClient = Depends(get_client)):
    return ChatMessagesResponse(chat_id=chat_id, messages=await _call(client.chat_history(chat_id)))
