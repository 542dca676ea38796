from enum import Enum
from typing import Any

from pydantic import AliasChoices
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class SessionState(str, Enum):
    """Lifecycle states of a single generation session."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    FAILED = "failed"


class GenerationRequest(BaseModel):
    """One instruction for the generation endpoint, optionally chained to the last accepted document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str
    previous_context: str | None = Field(default=None, alias="previousContext")

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt must not be empty")
        return v

    def to_payload(self, stream: bool = False) -> dict[str, Any]:
        """Render the JSON body sent to the generation endpoint."""
        payload = self.model_dump(by_alias=True, exclude_none=True)
        if stream:
            payload["stream"] = True
        return payload


class GenerationResult(BaseModel):
    """The final document of a successful session."""

    model_config = ConfigDict(populate_by_name=True)

    document: str = Field(validation_alias=AliasChoices("document", "code"))
    explanation: str = ""


class UploadResult(BaseModel):
    """Outcome of publishing a document through the upload endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    transaction_id: str | None = Field(default=None, alias="transactionId")
    gateway_url: str | None = Field(default=None, alias="gatewayUrl")
    explorer_url: str | None = Field(default=None, alias="explorerUrl")
    error: str | None = None
