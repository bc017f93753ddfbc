from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Role:
    """Role claim values issued by the auth service."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    COMPANY_MANAGER = "company_manager"
    VENDOR = "vendor"
    SHOP_OWNER = "shop_owner"

    ADMINS = frozenset({SUPER_ADMIN, ADMIN})


class AuthUser(BaseModel):
    """
    Represents an authenticated principal decoded from the access token.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = Role.SHOP_OWNER
    company_id: Optional[str] = None
    zones: list[str] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role in Role.ADMINS

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN
