from __future__ import annotations

import logging
import weakref
from typing import Any, List, Tuple

from . import config
from .connection import Connection
from .errors import PayloadError

logger = logging.getLogger(__name__)


class ConnectionList:
    """
    Delivery list of a subject.

    `live` is what notify walks. `suspended` holds the lists taken out of
    service by active blockers, so connections parked there can still be
    found and removed.
    """

    def __init__(self) -> None:
        self.live: List[Connection] = []
        self.suspended: List[List[Connection]] = []
        self.closed = False

    def __len__(self) -> int:
        return len(self.live)

    def append(self, connection: Connection) -> None:
        self.live.append(connection)

    def remove(self, connection: Connection) -> bool:
        # Recently added connections are the likeliest to go, so scan from the tail
        for items in [self.live, *reversed(self.suspended)]:
            for i in range(len(items) - 1, -1, -1):
                if items[i] is connection:
                    del items[i]
                    return True
        return False

    def suspend(self) -> List[Connection]:
        held, self.live = self.live, []
        self.suspended.append(held)
        return held

    def resume(self, held: List[Connection], merge: bool) -> List[Connection]:
        """
        Put `held` back in service. Returns the connections dropped from the list.

        Only the innermost blocker hands its list back to `live`. An outer
        blocker released first folds its list into the next inner snapshot
        (in place, the inner blocker holds that list object), so delivery
        stays suspended until every blocker is gone.
        """
        for i, items in enumerate(self.suspended):
            if items is held:
                del self.suspended[i]
                break
        else:
            return []
        if i < len(self.suspended):
            inner = self.suspended[i]
            if merge:
                inner[:0] = held
                return []
            window = list(inner)
            inner[:] = held
            return window
        window = self.live
        if merge:
            self.live = held + window
            return []
        self.live = held
        return window

    def drain(self) -> List[Connection]:
        """Empty every list (live and suspended) and return what was in them."""
        drained = list(self.live)
        for items in self.suspended:
            drained.extend(items)
            # blockers keep a reference to these lists
            items.clear()
        self.live = []
        self.suspended = []
        self.closed = True
        return drained


def _detach_connections(sequence: ConnectionList) -> None:
    connections = sequence.drain()
    for connection in connections:
        connection.detach_from_owner()
        connection.detach_from_subject()
    if connections:
        logger.debug("Subject closed, detached %d connection(s)", len(connections))


class Subject:
    """
    Broadcast point for notifications of a fixed positional shape.

        s = Subject(str, int)
        s.notify("PG", 1003)

    The subject only lists connections; their memory belongs to the Owner
    that made them. Closing the subject (explicitly, on `with` exit or when it
    is garbage collected) unregisters every listed connection from its owner.
    """

    def __init__(self, *payload_types: Any) -> None:
        self.payload_types: Tuple[Any, ...] = tuple(payload_types)
        self._sequence = ConnectionList()
        self._finalizer = weakref.finalize(self, _detach_connections, self._sequence)

    @property
    def arity(self) -> int:
        return len(self.payload_types)

    @property
    def closed(self) -> bool:
        return self._sequence.closed

    def __len__(self) -> int:
        return len(self._sequence)

    def __enter__(self) -> "Subject":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        names = ", ".join(getattr(t, "__name__", repr(t)) for t in self.payload_types)
        return f"<Subject({names}) connections={len(self)}>"

    def close(self) -> None:
        self._finalizer()

    def register_connection(self, connection: Connection) -> None:
        connection._sequence = self._sequence
        self._sequence.append(connection)

    def unregister_connection(self, connection: Connection) -> bool:
        if connection._sequence is self._sequence:
            connection._sequence = None
        return self._sequence.remove(connection)

    def _check_payload(self, args: Tuple[Any, ...]) -> None:
        if len(args) != self.arity:
            raise PayloadError(
                f"{self!r} expects {self.arity} argument(s), got {len(args)}"
            )
        if not config.CHECK_PAYLOAD_TYPES:
            return
        for i, (value, expected) in enumerate(zip(args, self.payload_types)):
            if not isinstance(expected, type) or expected is object:
                continue
            if not isinstance(value, expected):
                raise PayloadError(
                    f"argument {i} of {self!r} must be {expected.__name__}, "
                    f"got {type(value).__name__}"
                )

    def notify(self, *args: Any) -> None:
        """
        Deliver `args` to every live connection in registration order.

        Exceptions raised by an observer propagate; observers after it are
        not called for this notification. Connections added or removed by an
        observer while this runs may or may not see the notification.
        """
        self._check_payload(args)
        for connection in list(self._sequence.live):
            if not connection.attached:
                continue
            connection.dispatch(*args)
