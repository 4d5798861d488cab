class CommandValidationError(Exception):
    """Raised when a command list is rejected before any browser is opened."""

    pass


class ActionError(Exception):
    """Raised when a single command fails during execution."""

    pass


class ScrapeError(Exception):
    """Raised when a form page cannot be loaded or inspected."""

    pass
