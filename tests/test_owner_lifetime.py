import gc

import pytest
from hypothesis import given, strategies as st

from notifier.errors import ClosedError
from notifier.owner import Owner
from notifier.subject import Subject


class Panel:
    def __init__(self):
        self.seen = []

    def on_change(self, name, value):
        self.seen.append((name, value))

    def on_name(self, name):
        self.seen.append(name)


class SlottedPanel:
    __slots__ = ("seen",)

    def __init__(self):
        self.seen = []

    def on_name(self, name):
        self.seen.append(name)


def test_owner_close_stops_delivery():
    subject = Subject(str)
    owner = Owner()
    calls = []
    handle = owner.connect(subject, calls.append)

    owner.close()
    subject.notify("after")

    assert calls == []
    assert len(subject) == 0
    assert owner.closed
    assert not handle.attached


def test_owner_garbage_collection_stops_delivery():
    subject = Subject(str)
    calls = []
    owner = Owner()
    owner.connect(subject, calls.append)
    owner.connect(subject, lambda s: calls.append(s.upper()))

    subject.notify("a")
    del owner
    gc.collect()
    subject.notify("b")

    assert calls == ["a", "A"]
    assert len(subject) == 0


def test_owner_as_context_manager():
    subject = Subject(int)
    calls = []
    with Owner() as owner:
        owner.connect(subject, calls.append)
        subject.notify(1)
    subject.notify(2)
    assert calls == [1]


def test_owner_close_is_idempotent():
    owner = Owner()
    owner.connect(Subject(int), lambda v: None)
    owner.close()
    owner.close()
    assert len(owner) == 0


def test_owner_close_only_touches_its_own_connections():
    subject = Subject(int)
    mine, theirs = Owner(), Owner()
    calls = []
    mine.connect(subject, lambda v: calls.append("mine"))
    theirs.connect(subject, lambda v: calls.append("theirs"))

    mine.close()
    subject.notify(1)

    assert calls == ["theirs"]


def test_subject_close_then_disconnect_is_safe():
    subject = Subject(int)
    owner = Owner()
    handle = owner.connect(subject, lambda v: None)
    other = owner.connect(Subject(int), lambda v: None)

    subject.close()

    assert handle not in owner
    assert owner.disconnect(handle) is False
    # owner state still consistent
    assert len(owner) == 1
    assert other in owner
    assert owner.disconnect(other) is True
    assert len(owner) == 0


def test_subject_garbage_collection_unregisters_from_owner():
    owner = Owner()
    subject = Subject(int)
    handle = owner.connect(subject, lambda v: None)

    del subject
    gc.collect()

    assert len(owner) == 0
    assert handle.subject is None
    assert owner.disconnect(handle) is False
    owner.close()


def test_subject_as_context_manager():
    owner = Owner()
    with Subject(int) as subject:
        handle = owner.connect(subject, lambda v: None)
    assert subject.closed
    assert handle not in owner


def test_connect_after_close_raises():
    closed_owner = Owner()
    closed_owner.close()
    with pytest.raises(ClosedError):
        closed_owner.connect(Subject(int), lambda v: None)

    closed_subject = Subject(int)
    closed_subject.close()
    with pytest.raises(ClosedError):
        Owner().connect(closed_subject, lambda v: None)


def test_notify_on_closed_subject_delivers_to_no_one():
    subject = Subject(int)
    subject.close()
    subject.notify(1)


def test_disconnect_twice_is_a_noop():
    subject = Subject(int)
    owner = Owner()
    calls = []
    handle = owner.connect(subject, calls.append)

    assert owner.disconnect(handle) is True
    assert owner.disconnect(handle) is False
    subject.notify(1)

    assert calls == []
    assert len(owner) == 0
    assert len(subject) == 0


def test_disconnect_foreign_handle_raises():
    subject = Subject(int)
    a, b = Owner(), Owner()
    handle = a.connect(subject, lambda v: None)

    with pytest.raises(ValueError):
        b.disconnect(handle)
    assert handle in a


def test_connection_back_references():
    subject = Subject(int)
    owner = Owner()
    handle = owner.connect(subject, lambda v: None)

    assert handle.subject is subject
    assert handle.owner is owner
    assert handle.arity == 1
    assert list(owner) == [handle]
    assert "attached" in repr(handle)

    owner.disconnect(handle)
    assert handle.subject is None
    assert handle.owner is None
    assert "detached" in repr(handle)


def test_member_function_connection():
    subject = Subject(str, int)
    owner = Owner()
    panel = Panel()

    owner.connect(subject, panel, Panel.on_change)
    owner.connect(subject, panel, "on_name")
    subject.notify("PG", 1003)

    assert panel.seen == [("PG", 1003), "PG"]


def test_member_function_arity_is_checked():
    from notifier.errors import ArityError

    with pytest.raises(ArityError):
        Owner().connect(Subject(str), Panel(), Panel.on_change)


def test_collected_instance_detaches_its_connection():
    subject = Subject(str)
    owner = Owner()
    panel = Panel()
    handle = owner.connect(subject, panel, Panel.on_name)

    del panel
    gc.collect()

    assert not handle.attached
    assert len(owner) == 0
    assert len(subject) == 0
    subject.notify("ignored")


def test_instance_without_weakref_support_is_held():
    subject = Subject(str)
    owner = Owner()
    panel = SlottedPanel()
    owner.connect(subject, panel, SlottedPanel.on_name)
    seen = panel.seen

    del panel
    gc.collect()
    subject.notify("still here")

    assert seen == ["still here"]


class Toolbar:
    @staticmethod
    def reset(name):
        pass

    @classmethod
    def build(cls, name):
        pass

    def on_name(self, name):
        pass


@pytest.mark.parametrize("name", ["reset", "build"])
def test_member_connection_rejects_non_instance_methods(name):
    subject = Subject(str)
    owner = Owner()
    with pytest.raises(TypeError):
        owner.connect(subject, Toolbar(), name)
    assert len(owner) == 0
    assert len(subject) == 0


def test_member_connection_rejects_bound_method():
    subject = Subject(str)
    owner = Owner()
    toolbar = Toolbar()
    with pytest.raises(TypeError):
        owner.connect(subject, toolbar, toolbar.on_name)
    assert len(owner) == 0

    # the bound method on its own is a plain callable connection
    owner.connect(subject, toolbar.on_name)
    subject.notify("ok")


def test_relay_method_mismatch():
    with pytest.raises(TypeError):
        Owner().connect(Subject(int), Subject(int), "notify")


@given(st.lists(st.sampled_from(["connect", "disconnect", "close_subject"]), max_size=20))
def test_owner_destruction_safety_property(ops):
    """
    Property: whatever happened before, once the owner is closed none of its
    callables run again, and every handle reports detached.
    """
    subjects = [Subject(int), Subject(int)]
    owner = Owner()
    handles = []
    calls = []

    for i, op in enumerate(ops):
        subject = subjects[i % 2]
        if op == "connect" and not subject.closed:
            handles.append(owner.connect(subject, calls.append))
        elif op == "disconnect" and handles:
            owner.disconnect(handles.pop(0))
        elif op == "close_subject":
            subject.close()
            subjects[i % 2] = Subject(int)

    live = [h for h in handles if h.attached]
    assert len(owner) == len(live)

    owner.close()
    for subject in subjects:
        subject.notify(1)

    assert calls == []
    assert all(not h.attached for h in handles)
