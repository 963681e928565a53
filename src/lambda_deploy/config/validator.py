"""Turn pydantic validation failures into input error messages."""

from pydantic import ValidationError as PydanticValidationError

VALUE_ERROR_PREFIX = "Value error, "


def _input_name(loc: tuple[object, ...]) -> str:
    """Render a pydantic location as the dashed input name users type."""
    if not loc:
        return "input"
    return ".".join(str(part).replace("_", "-") for part in loc)


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into one message per failed input.

    Example:
        ``Input 'memory-size': Input should be greater than or equal to 128``
    """
    messages: list[str] = []
    for error in exc.errors():
        msg = str(error.get("msg", "Unknown error"))
        if msg.startswith(VALUE_ERROR_PREFIX):
            msg = msg[len(VALUE_ERROR_PREFIX) :]

        loc = tuple(error.get("loc", ()))
        if loc:
            messages.append(f"Input '{_input_name(loc)}': {msg}")
        else:
            messages.append(msg)

    return messages or ["Input validation failed with unknown error"]
