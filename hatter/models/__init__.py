from hatter.models.command import COMMAND_TYPES, Command, UnknownCommand, parse_command
from hatter.models.form_field import FieldOption, FormField, ScrapeResult
from hatter.models.report import ExecutionReport, Screenshot
from hatter.models.run import (
    GenerateScriptResponse,
    RunTestRequest,
    RunTestResponse,
    ScrapeRequest,
)

__all__ = [
    "COMMAND_TYPES",
    "Command",
    "UnknownCommand",
    "parse_command",
    "FormField",
    "ScrapeResult",
    "FieldOption",
    "ExecutionReport",
    "Screenshot",
    "GenerateScriptResponse",
    "RunTestRequest",
    "RunTestResponse",
    "ScrapeRequest",
]
