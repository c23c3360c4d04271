from __future__ import annotations

import inspect
import logging
import weakref
from typing import Any, Callable, Dict, Iterator, Optional, Union

from .arity import resolve_arity
from .connection import Connection, FunctionConnection, MethodConnection, RelayConnection
from .errors import ArityError, ClosedError, PayloadError, RelayError
from .subject import Subject

logger = logging.getLogger(__name__)


def _release_connections(connections: Dict[int, Connection]) -> None:
    owned = list(connections.values())
    for connection in owned:
        connection.detach_from_subject()
        connection.detach_from_owner()
    connections.clear()
    if owned:
        logger.debug("Owner closed, released %d connection(s)", len(owned))


def _check_relay_types(source: Subject, target: Subject) -> None:
    for i, (sent, expected) in enumerate(zip(source.payload_types, target.payload_types)):
        if not (isinstance(sent, type) and isinstance(expected, type)):
            continue
        if expected is object or issubclass(sent, expected):
            continue
        raise PayloadError(
            f"cannot relay argument {i}: {sent.__name__} is not a {expected.__name__}"
        )


class Owner:
    """
    Lifetime scope for connections.

    Every connection made through an owner lives in its registry until it is
    disconnected, until its subject closes, or until the owner itself closes
    (explicitly, on `with` exit or when garbage collected), whichever comes
    first. Closing the owner removes all of its connections from their
    subjects, so none of them can be invoked afterwards.
    """

    def __init__(self) -> None:
        self._connections: Dict[int, Connection] = {}
        self._finalizer = weakref.finalize(self, _release_connections, self._connections)

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        key = getattr(connection, "key", None)
        return key is not None and self._connections.get(key) is connection

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    def __enter__(self) -> "Owner":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._finalizer()

    def connect(
        self,
        subject: Subject,
        target: Union[Callable, Subject, Any],
        method: Optional[Union[Callable, str]] = None,
    ) -> Connection:
        """
        Bind `target` to `subject` and return the connection handle.

        - connect(subject, callable): the callable receives as many leading
          payload values as it declares parameters.
        - connect(subject, instance, function_or_name): called as
          function(instance, *args); the instance is held weakly.
        - connect(subject, other_subject): every notification on `subject`
          is re-emitted on `other_subject`.
        """
        if self.closed:
            raise ClosedError("cannot connect through a closed owner")
        if subject.closed:
            raise ClosedError(f"cannot connect to closed {subject!r}")

        if isinstance(target, Subject):
            if method is not None:
                raise TypeError("a relay takes no method")
            connection = self._make_relay(subject, target)
        elif method is not None:
            if isinstance(method, str):
                raw = inspect.getattr_static(type(target), method)
                if isinstance(raw, (staticmethod, classmethod)):
                    raise TypeError(f"'{method}' is not an instance method; connect it as a plain callable")
                method = getattr(type(target), method)
            elif inspect.ismethod(method):
                raise TypeError(f"{method!r} is already bound; pass the function or connect it alone")
            # bind only to read the signature without `self`
            bound = method.__get__(target, type(target)) if hasattr(method, "__get__") else method
            arity = resolve_arity(bound, subject.arity)
            connection = MethodConnection(self, subject, arity, target, method)
        else:
            if not callable(target):
                raise TypeError(f"{target!r} is not callable")
            arity = resolve_arity(target, subject.arity)
            connection = FunctionConnection(self, subject, arity, target)

        connection._registry = self._connections
        self._connections[connection.key] = connection
        subject.register_connection(connection)
        logger.debug("Connected %r to %r", connection, subject)
        return connection

    def _make_relay(self, source: Subject, target: Subject) -> RelayConnection:
        if target is source:
            raise RelayError(f"cannot relay {source!r} onto itself")
        if target.arity > source.arity:
            raise ArityError(
                f"cannot relay {source!r} onto {target!r}: "
                f"target needs {target.arity} argument(s), source emits {source.arity}"
            )
        _check_relay_types(source, target)
        return RelayConnection(self, source, target)

    def disconnect(self, connection: Connection) -> bool:
        """
        Remove `connection` from its subject and from this owner.

        Returns False when the connection is no longer live (already
        disconnected, or its subject or instance went away).
        """
        if connection._registry is None:
            return False
        if connection._registry is not self._connections:
            raise ValueError(f"{connection!r} belongs to a different owner")
        connection.detach_from_subject()
        connection.detach_from_owner()
        logger.debug("Disconnected %r", connection)
        return True
