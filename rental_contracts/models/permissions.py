"""Evaluator output models"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from rental_contracts.models.contract import ContractStatus, Party


class BadgeColor(str, Enum):
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"
    GRAY = "gray"


class StatusBadge(BaseModel):
    """Human-readable status label shown on a contract card"""
    text: str
    color: BadgeColor


class ContractPermissions(BaseModel):
    """Everything a view needs to decide which buttons to show"""
    contract_id: str
    party: Optional[Party] = None
    status: ContractStatus
    badge: StatusBadge
    can_approve: bool = False
    can_reject: bool = False
    can_sign: bool = False
    can_delete: bool = False
    can_download: bool = False
    can_send_reminder: bool = False
    can_edit: bool = False
