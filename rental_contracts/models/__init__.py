"""Data models"""

from rental_contracts.models.contract import (
    ContractStatus,
    Party,
    PartyDetails,
    Approval,
    Approvals,
    Signature,
    Signatures,
    StatusChange,
    StatusRecord,
    StatusReport,
    Contract,
)
from rental_contracts.models.user import (
    UserRole,
    User,
)
from rental_contracts.models.chat import (
    ChatMessage,
    ChatParticipant,
    Chat,
)
from rental_contracts.models.permissions import (
    BadgeColor,
    StatusBadge,
    ContractPermissions,
)

__all__ = [
    "ContractStatus",
    "Party",
    "PartyDetails",
    "Approval",
    "Approvals",
    "Signature",
    "Signatures",
    "StatusChange",
    "StatusRecord",
    "StatusReport",
    "Contract",
    "UserRole",
    "User",
    "ChatMessage",
    "ChatParticipant",
    "Chat",
    "BadgeColor",
    "StatusBadge",
    "ContractPermissions",
]
