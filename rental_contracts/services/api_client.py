"""Async REST client for the marketplace backend"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from rental_contracts.models.chat import Chat, ChatMessage
from rental_contracts.models.contract import Contract, StatusReport
from rental_contracts.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Backend call failed; ``status`` is None for transport errors"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ContractAPIClient:
    """Client for the contract, user-signature and chat endpoints.

    Use as an async context manager so the underlying session is closed:

        async with ContractAPIClient() as client:
            contracts = await client.my_contracts()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        token: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.api_base_url.rstrip("/")
        self.token = token if token is not None else self.settings.api_token
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ContractAPIClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        """Lazy-create the HTTP session."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def _headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, path: str, raw: bool = False, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with self.session.request(method, url, headers=self._headers(), **kwargs) as response:
                if response.status >= 400:
                    raise APIError(await self._error_message(response), status=response.status)
                if raw:
                    return await response.read()
                if response.content_type == "application/json":
                    return await response.json()
                return await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"{method} {url} failed: {e!r}")
            raise APIError(f"Could not reach backend: {e!r}") from e

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        try:
            body = await response.json(content_type=None)
            if isinstance(body, dict) and body.get("message"):
                return body["message"]
        except ValueError:
            pass
        return f"HTTP {response.status}"

    @staticmethod
    def _contract_from(body: Any) -> Optional[Contract]:
        """Action responses wrap the contract as ``{"message", "contract"}``."""
        data = body.get("contract") if isinstance(body, dict) else None
        if isinstance(data, dict) and data.get("contractId") and data.get("landlordId"):
            return Contract.from_api(data)
        return None

    # =========================================================
    # Contracts
    # =========================================================

    async def my_contracts(self) -> list[Contract]:
        data = await self._request("GET", "/contract/my")
        return [Contract.from_api(c) for c in data]

    async def get_contract(self, contract_id: str) -> Contract:
        data = await self._request("GET", f"/contract/{contract_id}")
        return Contract.from_api(data)

    async def contracts_for_property(self, property_id: str) -> list[Contract]:
        data = await self._request("GET", f"/contract/property/{property_id}")
        # Older backends return a single contract here
        if isinstance(data, dict):
            data = [data]
        return [Contract.from_api(c) for c in data or []]

    async def create_contract(self, payload: dict) -> dict:
        return await self._request("POST", "/contract", json=payload)

    async def update_contract(self, contract_id: str, payload: dict) -> Optional[Contract]:
        body = await self._request("PUT", f"/contract/{contract_id}", json=payload)
        return self._contract_from(body)

    async def delete_contract(self, contract_id: str) -> dict:
        return await self._request("DELETE", f"/contract/remove/{contract_id}")

    async def approve(self, contract_id: str, feedback: str = "") -> Optional[Contract]:
        body = await self._request("POST", f"/contract/{contract_id}/approve", json={"feedback": feedback})
        return self._contract_from(body)

    async def reject(self, contract_id: str, feedback: str = "") -> Optional[Contract]:
        body = await self._request("POST", f"/contract/{contract_id}/reject", json={"feedback": feedback})
        return self._contract_from(body)

    async def sign(
        self,
        contract_id: str,
        signature_text: str,
        signature_image: Optional[str] = None,
        use_stored_signature: bool = False,
    ) -> dict:
        payload: dict[str, Any] = {"signatureText": signature_text}
        if signature_image:
            payload["signatureImage"] = signature_image
        if use_stored_signature:
            payload["useStoredSignature"] = True
        return await self._request("POST", f"/contract/{contract_id}/sign", json=payload)

    async def send_reminder(self, contract_id: str, recipient_role: str) -> dict:
        return await self._request(
            "POST", f"/contract/{contract_id}/send-reminder", json={"recipientRole": recipient_role}
        )

    async def download_pdf(self, contract_id: str) -> bytes:
        return await self._request("POST", f"/contract/{contract_id}/pdf", raw=True)

    async def upload_document(
        self, contract_id: str, filename: str, content: bytes, document_type: str, user_role: str
    ) -> dict:
        form = aiohttp.FormData()
        form.add_field("documentType", document_type)
        form.add_field("userRole", user_role)
        form.add_field("document", content, filename=filename)
        return await self._request("POST", f"/contract/{contract_id}/upload-document", data=form)

    async def contract_status(self, contract_id: str) -> StatusReport:
        data = await self._request("GET", f"/contract/{contract_id}/status")
        return StatusReport.model_validate(data)

    async def verify_contract(self, contract_id: str, digital_hash: str) -> dict:
        return await self._request(
            "GET", f"/contract/{contract_id}/verify", params={"digitalHash": digital_hash}
        )

    # =========================================================
    # Stored user signature
    # =========================================================

    async def get_stored_signature(self) -> Optional[str]:
        data = await self._request("GET", "/user/signature")
        return data.get("signature") if data.get("hasSignature") else None

    async def save_signature(self, signature_image: str) -> dict:
        return await self._request("POST", "/user/signature", json={"signatureImage": signature_image})

    # =========================================================
    # Chat
    # =========================================================

    async def initiate_chat(self, property_id: str, participant_id: str) -> Chat:
        data = await self._request(
            "POST", "/chat/initiate", json={"propertyId": property_id, "participantId": participant_id}
        )
        return Chat.model_validate(data)

    async def chat_history(self, chat_id: str) -> list[ChatMessage]:
        data = await self._request("GET", f"/chat/history/{chat_id}")
        return [ChatMessage.model_validate(m) for m in data]

    async def my_chats(self) -> list[Chat]:
        data = await self._request("GET", "/chat/my")
        return [Chat.model_validate(c) for c in data]

    async def send_message(self, chat_id: str, text: str) -> ChatMessage:
        if not text.strip():
            raise ValueError("Message text is empty")
        data = await self._request("POST", "/chat/send", json={"chatId": chat_id, "text": text})
        return ChatMessage.model_validate(data)

    async def unread_count(self) -> int:
        data = await self._request("GET", "/chat/unread-count")
        return int(data.get("count", 0))
