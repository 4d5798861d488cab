import logging
from typing import Any, List

from hatter.automate.errors import CommandValidationError

logger = logging.getLogger(__name__)

NO_COMMANDS_MESSAGE = "No commands provided"


def validate_commands(commands: Any) -> List[Any]:
    """Reject a command list that is missing, not a list, or empty.

    Entries themselves are not inspected here; each one is checked when the
    step that uses it runs.
    """
    if not isinstance(commands, list) or len(commands) == 0:
        logger.warning(f"Rejected command list of type {type(commands).__name__}")
        raise CommandValidationError(NO_COMMANDS_MESSAGE)
    return commands
