"""Buyer/seller chat models"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rental_contracts.models.contract import _ref_id


class ChatMessage(BaseModel):
    """A single chat message"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(None, alias="_id")
    sender: Optional[str] = None
    text: str = ""
    timestamp: Optional[datetime] = None

    @field_validator("sender", mode="before")
    @classmethod
    def _normalize_sender(cls, value):
        return _ref_id(value)


class ChatParticipant(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    name: str = ""
    email: Optional[str] = None


class Chat(BaseModel):
    """A conversation about one property between two users"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    property: Optional[str] = None
    participants: List[ChatParticipant] = []
    messages: List[ChatMessage] = []
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("property", mode="before")
    @classmethod
    def _normalize_property(cls, value):
        ref = _ref_id(value)
        return str(ref) if ref is not None else None

    @field_validator("participants", mode="before")
    @classmethod
    def _normalize_participants(cls, value):
        # Unpopulated participants arrive as bare ids
        return [{"_id": p} if isinstance(p, str) else p for p in value or []]

    def other_participant(self, user_id: str) -> Optional[ChatParticipant]:
        return next((p for p in self.participants if p.id != user_id), None)
