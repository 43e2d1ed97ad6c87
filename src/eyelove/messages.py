"""Pydantic schemas for settings and cross-context messages."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .exceptions import MessageError
from .logger import get_logger

logger = get_logger()

Theme = Literal["light", "dark", "auto"]


class Settings(BaseModel):
    """User settings as stored by the settings collaborator."""

    enabled: bool = True
    theme: Theme = "auto"


class PartialSettings(BaseModel):
    """Settings as answered to the initial-state query; any key may be absent."""

    enabled: bool | None = None
    theme: Theme | None = None


class EnabledPayload(BaseModel):
    enabled: bool


class ThemePayload(BaseModel):
    theme: Theme


class OptionalEnabledPayload(BaseModel):
    enabled: bool | None = None


class GetSettings(BaseModel):
    action: Literal["getSettings"]


class ToggleEnabled(BaseModel):
    action: Literal["toggleEnabled"]


class SetEnabled(BaseModel):
    action: Literal["setEnabled"]
    payload: EnabledPayload


class SetTheme(BaseModel):
    action: Literal["setTheme"]
    payload: ThemePayload


class UpdateBodyClass(BaseModel):
    """Sent to the page when the enabled flag changes."""

    action: Literal["updateBodyClass"]
    payload: OptionalEnabledPayload = Field(default_factory=OptionalEnabledPayload)


class QueryInitialState(BaseModel):
    """Sent by the page to ask for the current settings."""

    action: Literal["queryInitialState"]


Message = Annotated[
    GetSettings | ToggleEnabled | SetEnabled | SetTheme | UpdateBodyClass | QueryInitialState,
    Field(discriminator="action"),
]

_message_adapter: TypeAdapter[Message] = TypeAdapter(Message)


def validate_message(raw: Any) -> Message:
    """Validate a raw message.

    Raises:
        MessageError: If the message matches none of the known actions
    """
    try:
        return _message_adapter.validate_python(raw)
    except PydanticValidationError as e:
        raise MessageError(f"Invalid message format: {e}") from e


def parse_message(raw: Any) -> Message | None:
    """Validate a raw message, logging and returning None when it is invalid."""
    try:
        return validate_message(raw)
    except MessageError as e:
        logger.warning(str(e))
        return None


def parse_settings(raw: Any) -> Settings:
    """Validate a (possibly partial) settings mapping; missing keys take defaults.

    Raises:
        MessageError: If a present key has the wrong type or value
    """
    try:
        return Settings.model_validate(raw if raw is not None else {})
    except PydanticValidationError as e:
        raise MessageError(f"Invalid settings: {e}") from e


def parse_partial_settings(raw: Any) -> PartialSettings:
    """Validate an initial-state response without filling in defaults.

    `None` reads as an empty response.

    Raises:
        MessageError: If a present key has the wrong type or value
    """
    try:
        return PartialSettings.model_validate(raw if raw is not None else {})
    except PydanticValidationError as e:
        raise MessageError(f"Invalid settings: {e}") from e
