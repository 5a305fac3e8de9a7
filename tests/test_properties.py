"""Tests for property resolution against Textual widget classes."""

import pytest
from textual.reactive import Reactive, reactive, var
from textual.widget import Widget
from textual.widgets import Label, Static

from declx import BindError, PropertyRegistry, registry
from declx.properties import normalize


class Gauge(Widget):
    level = reactive(0)
    max_level = var(10)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._caption = ""

    @property
    def ratio(self):
        return self.level / self.max_level

    @property
    def caption(self):
        return self._caption

    @caption.setter
    def caption(self, value):
        self._caption = value


class BigGauge(Gauge):
    pass


class TestNormalize:
    def test_dashes(self):
        assert normalize("max-level") == "max_level"
        assert normalize(" level ") == "level"


class TestResolve:
    def test_reactive_is_writable_and_observable(self):
        accessor = PropertyRegistry().resolve(Gauge, "level")
        assert accessor.name == "level"
        assert accessor.writable
        assert accessor.observable

    def test_var_and_dashed_name(self):
        accessor = PropertyRegistry().resolve(Gauge, "max-level")
        assert accessor.name == "max_level"
        assert accessor.observable

    def test_read_only_property(self):
        accessor = PropertyRegistry().resolve(Gauge, "ratio")
        assert not accessor.writable
        assert not accessor.observable

    def test_settable_property(self):
        accessor = PropertyRegistry().resolve(Gauge, "caption")
        assert accessor.writable
        assert not accessor.observable

    def test_inherited(self):
        assert PropertyRegistry().resolve(BigGauge, "level").observable

    def test_missing(self):
        with pytest.raises(BindError, match="Property no_such_property does not exist on Gauge."):
            PropertyRegistry().resolve(Gauge, "no-such-property")

    def test_lookup_miss_is_none(self):
        assert PropertyRegistry().lookup(Gauge, "nothing") is None

    def test_cached(self):
        properties = PropertyRegistry()
        assert properties.lookup(Gauge, "level") is properties.lookup(Gauge, "level")


class TestAccessors:
    def test_get_set_watch(self):
        gauge = Gauge()
        accessor = PropertyRegistry().resolve(Gauge, "level")
        changes = []
        accessor.watcher(gauge, lambda old, new: changes.append((old, new)))
        accessor.setter(gauge, 3)
        assert accessor.getter(gauge) == 3
        assert changes == [(0, 3)]

    def test_watch_ignores_initialization(self):
        gauge = Gauge()
        accessor = PropertyRegistry().resolve(Gauge, "level")
        changes = []
        accessor.watcher(gauge, lambda old, new: changes.append((old, new)))
        # What mounting does to every reactive of the widget.
        Reactive._initialize_object(gauge)
        assert changes == []

    def test_property_setter(self):
        gauge = Gauge()
        accessor = PropertyRegistry().resolve(Gauge, "caption")
        accessor.setter(gauge, "hello")
        assert accessor.getter(gauge) == "hello"


class TestRegister:
    def test_explicit_wins_and_applies_to_subclasses(self):
        properties = PropertyRegistry()
        properties.register(Gauge, "level", lambda w: "explicit")
        accessor = properties.resolve(BigGauge, "level")
        assert accessor.getter(BigGauge()) == "explicit"
        assert not accessor.writable

    def test_register_clears_cached_miss(self):
        properties = PropertyRegistry()
        assert properties.lookup(Gauge, "percent") is None
        properties.register(Gauge, "percent", lambda w: w.level * 10)
        assert properties.lookup(Gauge, "percent") is not None

    def test_names(self):
        properties = PropertyRegistry()
        properties.register(Gauge, "percent", lambda w: 0)
        names = properties.names(BigGauge)
        assert {"level", "max_level", "ratio", "caption", "percent"} <= set(names)
        assert names == sorted(names)


class TestDefaultRegistry:
    def test_static_text(self):
        accessor = registry.resolve(Label, "text")
        label = Label("before")
        assert accessor.getter(label) == "before"
        accessor.setter(label, "after")
        assert accessor.getter(label) == "after"

    def test_static_text_is_not_observable(self):
        assert not registry.resolve(Static, "text").observable
