"""
Connections: one binding between a Subject and a callable.

A connection is owned by the Owner that created it (the Owner's registry is
the only strong holder apart from the Subject's delivery list) and knows both
endpoints only through weak references. The links into the two collections
(`_sequence` and `_registry`) are cleared by the detach operations, which are
the only way a connection leaves either side.
"""
from __future__ import annotations

import itertools
import logging
import weakref
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

from .arity import first_n

logger = logging.getLogger(__name__)

_keys = itertools.count(1)


class Connection(ABC):
    def __init__(self, owner, subject, arity: int) -> None:
        self.key: int = next(_keys)
        self.arity = arity
        self._owner_ref = weakref.ref(owner)
        self._subject_ref = weakref.ref(subject)
        # set by Subject.register_connection / Owner.connect
        self._sequence = None
        self._registry: Optional[Dict[int, "Connection"]] = None

    @property
    def subject(self):
        """The subject this connection is listed in, or None once detached."""
        if self._sequence is None:
            return None
        return self._subject_ref()

    @property
    def owner(self):
        if self._registry is None:
            return None
        return self._owner_ref()

    @property
    def attached(self) -> bool:
        return self._sequence is not None and self._registry is not None

    def dispatch(self, *payload: Any) -> None:
        """Invoke the wrapped callable with the first `arity` payload values."""
        self._invoke(first_n(payload, self.arity))

    @abstractmethod
    def _invoke(self, args: Tuple[Any, ...]) -> None:
        ...

    def detach_from_subject(self) -> None:
        sequence, self._sequence = self._sequence, None
        if sequence is not None:
            sequence.remove(self)

    def detach_from_owner(self) -> None:
        registry, self._registry = self._registry, None
        if registry is not None:
            registry.pop(self.key, None)

    def __repr__(self) -> str:
        state = "attached" if self.attached else "detached"
        return f"<{type(self).__name__} #{self.key} arity={self.arity} {state}>"


class FunctionConnection(Connection):
    """Free function, lambda, bound method or any other callable value."""

    def __init__(self, owner, subject, arity: int, function: Callable) -> None:
        super().__init__(owner, subject, arity)
        self.function = function

    def _invoke(self, args):
        self.function(*args)


class MethodConnection(Connection):
    """
    An (instance, function) pair, called as function(instance, *args).

    The instance is referenced weakly when its type allows it; once it is
    collected the connection removes itself from both endpoints.
    """

    def __init__(self, owner, subject, arity: int, instance: Any, function: Callable) -> None:
        super().__init__(owner, subject, arity)
        self.function = function
        try:
            self._instance = weakref.ref(instance, self._instance_collected)
        except TypeError:
            # __slots__ without __weakref__: hold it strongly
            self._instance = lambda: instance

    def _instance_collected(self, _ref) -> None:
        logger.debug("Instance behind %r collected, detaching", self)
        self.detach_from_subject()
        self.detach_from_owner()

    def _invoke(self, args):
        instance = self._instance()
        if instance is None:
            return
        self.function(instance, *args)


class RelayConnection(Connection):
    """Re-emits every notification on a second subject."""

    def __init__(self, owner, subject, target) -> None:
        super().__init__(owner, subject, target.arity)
        self.target = target

    def _invoke(self, args):
        self.target.notify(*args)
