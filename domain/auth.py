"""Domain Entities - Auth"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from typing import Optional


class Role(str, Enum):
    CUSTOMER = "customer"
    STAFF = "staff"
    ADMIN = "admin"


class User(BaseModel):
    """User Entity"""
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role = Role.CUSTOMER
    disabled: bool = False

    def is_staff(self) -> bool:
        return self.role in (Role.STAFF, Role.ADMIN)

class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
