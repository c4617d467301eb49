"""Command schemas for messages posted by the preview surface."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class InvalidCommandError(ValueError):
    """Raised when a message from the preview surface is not a known command."""


class _Command(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class SelectFileCommand(_Command):
    """Open a file picker and preview the chosen HTML document"""

    command: Literal["selectFile"]


class SwitchTabCommand(_Command):
    """Make another tab active"""

    command: Literal["switchTab"]
    tab_id: str = Field(
        alias="tabId",
        min_length=1,
        description="Identifier of the tab to activate, as rendered in the tab bar",
    )


class CloseTabCommand(_Command):
    """Close a tab"""

    command: Literal["closeTab"]
    tab_id: str = Field(
        alias="tabId",
        min_length=1,
        description="Identifier of the tab to close, as rendered in the tab bar",
    )


class AddTabCommand(_Command):
    """Append a new unbound tab and make it active"""

    command: Literal["addTab"]


PreviewCommand = Annotated[
    Union[SelectFileCommand, SwitchTabCommand, CloseTabCommand, AddTabCommand],
    Field(discriminator="command"),
]

_command_adapter: TypeAdapter = TypeAdapter(PreviewCommand)


def parse_command(message: Any) -> PreviewCommand:
    """Validate a raw message and return its command variant.

    Raises:
        InvalidCommandError: for unknown tags and malformed payloads
    """
    try:
        return _command_adapter.validate_python(message)
    except ValidationError as e:
        tag = message.get("command") if isinstance(message, dict) else None
        problems = "; ".join(err["msg"] for err in e.errors())
        raise InvalidCommandError(f"Rejected command {tag!r}: {problems}") from e
