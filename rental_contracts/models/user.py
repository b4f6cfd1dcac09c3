"""Marketplace user models"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Marketplace-wide role, distinct from the landlord/tenant party"""
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class User(BaseModel):
    """The viewing user"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    name: str = ""
    email: Optional[str] = None
    role: UserRole = UserRole.BUYER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
