class ObserverError(Exception):
    """Base class for notifier errors."""
    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.code = code or self.__class__.__name__


class ArityError(ObserverError, TypeError):
    """Raised at connect time when a callable needs more arguments than the subject emits."""


class PayloadError(ObserverError, TypeError):
    """Raised when a notification does not match the subject's payload shape."""


class RelayError(ObserverError, ValueError):
    """Raised when a relay would forward a subject onto itself."""


class ClosedError(ObserverError, RuntimeError):
    """Raised when connecting through a closed owner or onto a closed subject."""
