from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ExternalIdentity(BaseModel):
    """Verified identity handed over by the identity provider callback."""

    id: str = Field(..., min_length=1, max_length=64)
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class OnboardingRequest(BaseModel):
    role: Literal["manager", "employee"]
    business_name: str = Field(..., min_length=1)
    full_name: str | None = None
    invite_code: str | None = None


class OnboardingResult(BaseModel):
    success: bool = True
    role: Literal["manager", "employee"]
    workplace_id: int
    pending: bool = False


class AccountRead(BaseModel):
    id: str
    email: str
    username: str
    full_name: str
    role: str
    is_manager: bool
    is_active: bool
    is_approved: bool
    workplace_id: int | None = None
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)
