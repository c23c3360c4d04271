from __future__ import annotations

import logging
import weakref
from typing import List

from . import config
from .connection import Connection
from .subject import ConnectionList, Subject

logger = logging.getLogger(__name__)


def _resume(sequence: ConnectionList, held: List[Connection]) -> None:
    merge = config.BLOCKER_RELEASE_POLICY == "merge"
    dropped = sequence.resume(held, merge=merge)
    # restore policy: connections made while blocked must not stay half-registered
    for connection in dropped:
        connection.detach_from_owner()
        connection.detach_from_subject()
    logger.debug(
        "Blocker released: %d connection(s) live, %d dropped", len(sequence), len(dropped)
    )


class NotificationBlocker:
    """
    Suspends delivery on one subject for the blocker's lifetime.

        with NotificationBlocker(subject):
            subject.notify(...)   # delivered to no one

    On release the connections that were live before blocking are put back.
    What happens to connections made during the blocked window depends on
    config.BLOCKER_RELEASE_POLICY.
    """

    def __init__(self, subject: Subject) -> None:
        if config.BLOCKER_RELEASE_POLICY not in config.BLOCKER_RELEASE_POLICIES:
            raise ValueError(f"unknown blocker release policy: {config.BLOCKER_RELEASE_POLICY!r}")
        self.subject = subject
        sequence = subject._sequence
        held = sequence.suspend()
        logger.debug("Blocking %r (%d connection(s) held)", subject, len(held))
        self._finalizer = weakref.finalize(self, _resume, sequence, held)

    @property
    def active(self) -> bool:
        return self._finalizer.alive

    def release(self) -> None:
        self._finalizer()

    def __enter__(self) -> "NotificationBlocker":
        return self

    def __exit__(self, *exc) -> None:
        self.release()
