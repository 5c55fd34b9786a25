from enum import Enum
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Any, Dict, Optional


class Role(str, Enum):
    VOLUNTEER = "volunteer"
    STAFF = "staff"
    ADMIN = "admin"


class Department(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Department name is required")
        return v


class Personnel(BaseModel):
    """A personnel row; ``id`` matches the auth user id when the person has a login."""
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Role = Role.VOLUNTEER
    department_id: Optional[str] = None
    departments: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None
    license_number: Optional[str] = None
    license_expiry: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def active(self) -> bool:
        # A missing flag counts as active; only an explicit False locks the person out
        return self.is_active is not False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class PersonnelCreate(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: Role = Role.VOLUNTEER
    department_id: Optional[str] = None
    is_active: bool = True
    license_number: Optional[str] = None
    license_expiry: Optional[str] = None
    # Login account
    create_account: bool = False
    password: Optional[str] = Field(default=None, min_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    def row(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"create_account", "password"}, exclude_none=True, mode="json")


class PersonnelUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: Optional[Role] = None
    department_id: Optional[str] = None
    is_active: Optional[bool] = None
    license_number: Optional[str] = None
    license_expiry: Optional[str] = None

    def patch(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, mode="json")
