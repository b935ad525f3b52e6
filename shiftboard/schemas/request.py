from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AvailabilitySubmit(BaseModel):
    requests: str = Field(..., min_length=1)

    @field_validator("requests")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Request cannot be empty")
        return value


class UserRequestRead(BaseModel):
    id: int
    account_id: str
    workplace_id: int
    requests: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
