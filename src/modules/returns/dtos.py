"""Return DTOs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class RequestReturnDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str

    @field_validator("reason")
    @classmethod
    def reason_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("A reason is required.")
        return v
