from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Optional, Type, Union

Pattern = Optional[Union[str, Type, Callable[[Any], bool]]]


@dataclass
class Action:
    """Base class for actions. Any object can be dispatched; this just supplies a type."""
    type: ClassVar[str]

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if 'type' not in cls.__dict__:
            cls.type = cls.__name__.upper()


def action_type(action: Any) -> Optional[str]:
    """Return the type string of an action object or ``{"type": ...}`` dict."""
    if isinstance(action, dict):
        return action.get("type")
    return getattr(action, "type", None)


def matches(pattern: Pattern, action: Any) -> bool:
    """Check an action against a saga pattern."""
    if pattern is None:
        return True
    if isinstance(pattern, str):
        return action_type(action) == pattern
    if isinstance(pattern, type):
        return isinstance(action, pattern)
    if callable(pattern):
        return bool(pattern(action))
    raise TypeError(f"Unsupported action pattern: {pattern!r}")
