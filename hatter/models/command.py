import logging
from typing import Annotated, Any, Dict, Literal, Optional, Union, get_args

from pydantic import Field, TypeAdapter, ValidationError

from hatter.automate.errors import ActionError
from hatter.models.base import CamelModel

logger = logging.getLogger(__name__)


class CommandBase(CamelModel):
    description: Optional[str] = None


class Navigate(CommandBase):
    action: Literal["navigate"]
    url: str


class WaitForSelector(CommandBase):
    action: Literal["waitForSelector"]
    selector: str


class WaitForSelectorPartial(CommandBase):
    action: Literal["waitForSelectorPartial"]
    partial_id: str


class Type(CommandBase):
    action: Literal["type"]
    selector: str
    text: str


class TypePartial(CommandBase):
    action: Literal["typePartial"]
    partial_id: str
    text: str


class Click(CommandBase):
    action: Literal["click"]
    selector: str


class ClickPartial(CommandBase):
    action: Literal["clickPartial"]
    partial_id: str


class SelectOption(CommandBase):
    action: Literal["selectOption"]
    selector: str
    value: str


class Hover(CommandBase):
    action: Literal["hover"]
    selector: str


class Scroll(CommandBase):
    action: Literal["scroll"]
    # None scrolls to the bottom of the document
    y: Optional[float] = None


class Wait(CommandBase):
    action: Literal["wait"]
    duration: float = Field(default=1000, ge=0)


class WaitForNavigation(CommandBase):
    action: Literal["waitForNavigation"]


class WaitForText(CommandBase):
    action: Literal["waitForText"]
    text: str


class TakeScreenshot(CommandBase):
    action: Literal["screenshot"]
    filename: Optional[str] = None


class GetCookies(CommandBase):
    action: Literal["getCookies"]


class SetCookie(CommandBase):
    action: Literal["setCookie"]
    cookie: Dict[str, Any]


class Evaluate(CommandBase):
    action: Literal["evaluate"]
    code: str


class AssertText(CommandBase):
    action: Literal["assertText"]
    selector: str
    expected_text: str


class AssertElementExists(CommandBase):
    action: Literal["assertElementExists"]
    selector: str


class ClearInput(CommandBase):
    action: Literal["clearInput"]
    selector: str


class UnknownCommand(CommandBase):
    """An action this engine does not know. Executed as a no-op."""

    action: str
    raw: Dict[str, Any] = Field(default_factory=dict)


Command = Annotated[
    Union[
        Navigate,
        WaitForSelector,
        WaitForSelectorPartial,
        Type,
        TypePartial,
        Click,
        ClickPartial,
        SelectOption,
        Hover,
        Scroll,
        Wait,
        WaitForNavigation,
        WaitForText,
        TakeScreenshot,
        GetCookies,
        SetCookie,
        Evaluate,
        AssertText,
        AssertElementExists,
        ClearInput,
    ],
    Field(discriminator="action"),
]

# action tag -> variant
COMMAND_TYPES: Dict[str, type] = {
    get_args(model.model_fields["action"].annotation)[0]: model
    for model in get_args(get_args(Command)[0])
}

_command_adapter = TypeAdapter(Command)


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        # first element of loc is the discriminator tag
        field = ".".join(str(part) for part in item["loc"][1:]) or "command"
        problems.append(f"{field}: {item['msg']}")
    return "; ".join(problems)


def parse_command(entry: Any) -> Union[Command, UnknownCommand]:
    """Turn one raw command entry into its typed variant.

    Field checks happen here, at dispatch time, so a malformed entry only
    fails the step that uses it.
    """
    if not isinstance(entry, dict):
        raise ActionError(f"Invalid command entry: {entry!r}")

    action = entry.get("action")
    description = entry.get("description")
    if not isinstance(action, str) or action not in COMMAND_TYPES:
        return UnknownCommand(
            action=str(action),
            description=description if isinstance(description, str) else None,
            raw=entry,
        )

    fields = dict(entry)
    if description is not None and not isinstance(description, str):
        # descriptions are free text and never fail a step
        logger.warning(f"Ignoring non-text description on '{action}' command: {description!r}")
        fields.pop("description")

    try:
        return _command_adapter.validate_python(fields)
    except ValidationError as e:
        raise ActionError(
            f"Invalid '{action}' command: {_describe_validation_error(e)}"
        ) from e
