"""
Data models for parcelbot.
Defines tracking results, provider replies and command invocations.

/track flow:
1. Select providers that recognize the shipment number
2. Query every selected provider concurrently
3. Fold replies into a live status message
4. Send a detailed timeline for each successful provider
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field, model_validator


class TrackingStep(BaseModel):
    """A single waypoint in a shipment's history."""

    timestamp: datetime
    message: str
    location: str = ""  # empty when the carrier reports none


class TrackingData(BaseModel):
    """Tracking information returned by one provider."""

    shipment_number: str
    provider_name: str
    destination: str = ""

    # Chronological, the last step is the most recent state
    steps: list[TrackingStep] = Field(default_factory=list)

    @property
    def latest_step(self) -> Optional[TrackingStep]:
        return self.steps[-1] if self.steps else None


class ProviderReply(BaseModel):
    """Outcome of querying one provider: either data or an error, never both."""

    provider: Any
    data: Optional[TrackingData] = None
    error: Optional[BaseException] = None

    class Config:
        arbitrary_types_allowed = True

    @model_validator(mode="after")
    def check_exactly_one(self) -> "ProviderReply":
        if (self.data is None) == (self.error is None):
            raise ValueError("a provider reply carries exactly one of data or error")
        return self

    @property
    def provider_name(self) -> str:
        return self.provider.get_name()

    @property
    def is_success(self) -> bool:
        return self.data is not None


class CommandArguments(BaseModel):
    """A parsed command invocation."""

    command: str
    arguments: list[str] = Field(default_factory=list)

    # Origin
    chat_id: int
    message_id: int


class InlineButton(BaseModel):
    """A single inline keyboard button attached to a message."""

    text: str
    callback_data: str = Field(max_length=64)  # Telegram limit
