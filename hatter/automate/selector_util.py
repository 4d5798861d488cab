from hatter.automate.errors import ActionError


def escape_attribute_value(value: str) -> str:
    """Escape a value for use inside a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def partial_id_selector(fragment: str) -> str:
    return f'[id*="{escape_attribute_value(fragment)}"]'


def resolve_selector(command) -> str:
    """Return the CSS selector a command targets.

    Exact selectors pass through untouched. ``*Partial`` commands match the
    first element whose id contains ``partialId``.
    """
    partial_id = getattr(command, "partial_id", None)
    if partial_id is not None:
        if not partial_id:
            raise ActionError(f"'{command.action}' requires a non-empty partialId")
        return partial_id_selector(partial_id)

    selector = getattr(command, "selector", None)
    if not selector or not selector.strip():
        raise ActionError(f"'{command.action}' requires a non-empty selector")
    return selector
