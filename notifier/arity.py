import inspect
from typing import Any, Callable, Optional, Sequence, Tuple

from . import config
from .errors import ArityError

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def _describe(fn: Callable) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


def positional_bounds(fn: Callable) -> Tuple[int, Optional[int]]:
    """
    Return (required, maximum) positional parameter counts for `fn`.

    maximum is None when `fn` declares *args. A keyword-only parameter
    without a default can never be supplied by a notification, so such a
    callable is rejected here.
    """
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        if config.UNKNOWN_SIGNATURE_IS_VARIADIC:
            return 0, None
        raise ArityError(f"cannot determine the parameters of {_describe(fn)}")

    required = 0
    maximum: Optional[int] = 0
    for p in sig.parameters.values():
        if p.kind in _POSITIONAL:
            maximum += 1
            if p.default is p.empty:
                required += 1
        elif p.kind == p.VAR_POSITIONAL:
            maximum = None
        elif p.kind == p.KEYWORD_ONLY and p.default is p.empty:
            raise ArityError(
                f"{_describe(fn)} has required keyword-only parameter '{p.name}'"
            )
    return required, maximum


def resolve_arity(fn: Callable, available: int) -> int:
    """Number of leading payload values `fn` will receive from a subject emitting `available`."""
    required, maximum = positional_bounds(fn)
    if required > available:
        raise ArityError(
            f"{_describe(fn)} needs {required} argument(s) "
            f"but the subject only emits {available}"
        )
    if maximum is None:
        return available
    return min(maximum, available)


def first_n(args: Sequence[Any], n: int) -> Tuple[Any, ...]:
    return tuple(args[:n])
