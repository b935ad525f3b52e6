from pydantic import BaseModel, ConfigDict, Field, field_validator

from .auth import AccountRead


class WorkplaceRead(BaseModel):
    id: int
    name: str | None = None
    business_name: str
    manager_id: str

    model_config = ConfigDict(from_attributes=True)


class ProfileRead(AccountRead):
    workplace: WorkplaceRead | None = None


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1)
    avatar_url: str | None = None

    @field_validator("full_name")
    @classmethod
    def _full_name_not_null(cls, value: str | None) -> str:
        # Omitting the field keeps the current name; an explicit null is an error.
        if value is None or not value.strip():
            raise ValueError("full_name cannot be empty")
        return value
