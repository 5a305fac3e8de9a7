"""Tests for Root: phase guards, timings and message routing."""

import pytest
from textual.message import Message
from textual.widget import Widget

from declx import Component, ConstructionError, LifecycleError, Native, Phase, Root


class Leaf(Widget):
    pass


class Ping(Message):
    def __init__(self, widget):
        self.widget = widget
        super().__init__()

    @property
    def control(self):
        return self.widget


class Pong(Message):
    pass


class TestLaunch:
    def test_returns_widget_tree(self):
        leaf = Native(Leaf)
        root = Root(leaf)
        assert root.launch() is leaf.native
        assert root.lifecycle is Phase.AFTER_CONSTRUCTION
        assert root.component is leaf

    def test_empty_tree_is_fatal(self):
        with pytest.raises(ConstructionError, match="Component hierarchy construction failed."):
            Root(Component()).launch()

    def test_phase_cannot_run_twice(self):
        root = Root(Native(Leaf))
        root.launch()
        with pytest.raises(LifecycleError, match="already been invoked"):
            root.after_construction()
        with pytest.raises(LifecycleError):
            root.launch()

    def test_lifecycle_before_start(self):
        with pytest.raises(LifecycleError, match="Lifecycle has not yet started."):
            Root(Native(Leaf)).lifecycle

    def test_measurements(self):
        root = Root(Native(Leaf))
        root.launch()
        assert list(root.measurements) == [Phase.BEFORE_CONSTRUCTION, Phase.CONSTRUCTION, Phase.AFTER_CONSTRUCTION]
        assert all(seconds >= 0 for seconds in root.measurements.values())

    def test_str_shows_timings(self):
        root = Root(Native(Leaf))
        assert str(root) == "Root"
        root.launch()
        text = str(root)
        assert text.startswith("Root (before_construction: ")
        assert "construction: " in text
        assert text.endswith("s)")

    def test_stringify_hierarchy_needs_lifecycle(self):
        with pytest.raises(LifecycleError):
            Root(Native(Leaf)).stringify_hierarchy()

    def test_root_has_no_parent(self):
        root = Root(Native(Leaf))
        assert root.parent is None
        assert root.root is root
        with pytest.raises(LifecycleError, match="cannot have a parent"):
            Component(root)

    def test_deconstruct(self):
        leaf = Native(Leaf)
        root = Root(leaf)
        root.launch()
        root.deconstruct()
        assert root.lifecycle is Phase.DESTROYED
        assert leaf.phase is Phase.DESTROYED


class TestLive:
    def test_mark_live(self):
        leaf = Native(Leaf)
        root = Root(leaf)
        root.launch()
        root.mark_live()
        assert root.lifecycle is Phase.LIVE
        assert leaf.phase is Phase.LIVE

    def test_mark_live_too_early(self):
        root = Root(Native(Leaf))
        root.before_construction()
        with pytest.raises(LifecycleError, match="Cannot go live"):
            root.mark_live()


class TestRouting:
    def test_dispatch_to_owner(self):
        received = []
        leaf = Native(Leaf).on(Ping, lambda message, component: received.append((message, component)))
        root = Root(leaf)
        root.launch()
        ping = Ping(leaf.native)
        assert root.dispatch(ping) is True
        assert received == [(ping, leaf)]

    def test_handler_arities(self):
        log = []
        leaf = (
            Native(Leaf)
            .on(Ping, lambda: log.append("none"))
            .on(Ping, lambda message: log.append("message"))
        )
        root = Root(leaf)
        root.launch()
        root.dispatch(Ping(leaf.native))
        assert log == ["none", "message"]

    def test_other_message_types_ignored(self):
        log = []
        leaf = Native(Leaf).on(Ping, lambda: log.append("ping"))
        root = Root(leaf)
        root.launch()
        assert root.dispatch(Pong()) is False
        assert root.dispatch(Ping(Leaf())) is False
        assert log == []

    def test_unrouted_after_teardown(self):
        log = []
        leaf = Native(Leaf).on(Ping, lambda: log.append("ping"))
        root = Root(leaf)
        widget = root.launch()
        root.deconstruct()
        assert root.dispatch(Ping(widget)) is False
        assert log == []

    def test_route_is_idempotent(self):
        leaf = Native(Leaf)
        root = Root(leaf)
        widget = root.launch()
        assert root.route(widget, leaf) is True
        assert root.route(widget, leaf) is False
