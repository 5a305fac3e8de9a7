"""Tests for Context, Provider, Consumer and Binding."""

import pytest
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widget import Widget

from declx import Binding, Cell, Component, Consumer, Context, LifecycleError, Native, NativeContainer, Phase, Provider, Root


class Leaf(Widget):
    pass


def leaf():
    return Native(Leaf)


class TestContext:
    def test_claim_first_wins(self):
        context = Context()
        first, second = Cell(), Cell()
        assert context.claim("x", first) is first
        assert context.claim("x", second) is first
        assert context.get("x") is first

    def test_provide_inserts(self):
        context = Context()
        stored = context.provide("x", 5)
        assert stored.get() == 5
        assert "x" in context
        assert len(context) == 1

    def test_provide_pushes_into_existing(self):
        context = Context()
        cell = context.claim("x", Cell())
        seen = []
        cell.subscribe(seen.append)
        assert context.provide("x", 5) is cell
        assert seen == [None, 5]

    def test_identifiers(self):
        context = Context()
        context.provide("b", 1)
        context.provide("a", 2)
        assert context.identifiers() == ["b", "a"]
        assert list(context) == ["b", "a"]
        assert context.get("missing") is None


class TestProvider:
    def test_contributes_no_widget(self):
        provider = Provider("x", 1)
        container = NativeContainer(Vertical, provider, leaf())
        Root(container).launch()
        assert provider.native is None
        assert provider.phase is Phase.AFTER_CONSTRUCTION

    def test_refuses_children(self):
        with pytest.raises(LifecycleError):
            Provider("x", 1).add_child(Component())

    def test_name(self):
        assert str(Provider("answer", 42)) == "Provider[answer]"


class TestConsumer:
    def test_builder_runs_at_declaration(self):
        received = []

        def build(cell):
            received.append(cell)
            return leaf()

        consumer = Consumer("x", build)
        assert received == list(consumer.cells)
        assert len(consumer.children) == 1

    def test_provider_before_consumer(self):
        consumer = Consumer("x", lambda x: leaf())
        Root(NativeContainer(Vertical, Provider("x", 5), consumer)).launch()
        assert consumer.cells[0].get() == 5

    def test_provider_after_consumer(self):
        consumer = Consumer("x", lambda x: leaf())
        Root(NativeContainer(Vertical, consumer, Provider("x", 5))).launch()
        assert consumer.cells[0].get() == 5

    def test_provider_after_consumer_notifies(self):
        seen = []

        def build(x):
            x.subscribe(seen.append)
            return leaf()

        Root(NativeContainer(Vertical, Consumer("x", build), Provider("x", 5))).launch()
        assert seen == [None, 5]

    def test_across_branches(self):
        consumer = Consumer("theme", lambda theme: leaf())
        tree = NativeContainer(
            Vertical,
            NativeContainer(Horizontal, leaf(), consumer),
            NativeContainer(Horizontal, Provider("theme", "dark"), leaf()),
        )
        Root(tree).launch()
        assert consumer.cells[0].get() == "dark"

    def test_late_consumer_writes_back(self):
        first = Consumer("x", lambda x: leaf())
        second = Consumer("x", lambda x: leaf())
        root = Root(NativeContainer(Vertical, Provider("x", 1), first, second))
        root.launch()
        second.cells[0].set(5)
        assert root.context.get("x").get() == 5
        assert first.cells[0].get() == 5

    def test_two_way_widget_reaches_sibling_consumer(self):
        class Gauge(Widget):
            level = reactive(0)

        gauges = []

        def build(level):
            gauges.append(Native(Gauge).bind("level", level))
            return gauges[-1]

        first = Consumer("level", build)
        second = Consumer("level", build)
        Root(NativeContainer(Vertical, Provider("level", 1), first, second)).launch()
        assert [gauge.native.level for gauge in gauges] == [1, 1]
        gauges[1].native.level = 8
        assert first.cells[0].get() == 8
        assert gauges[0].native.level == 8

    def test_consumer_fallback_stays_private(self):
        def build(x):
            x.or_else("fallback")
            return leaf()

        root = Root(NativeContainer(Vertical, Consumer("x", lambda x: leaf()), Consumer("x", build)))
        root.launch()
        assert root.context.get("x").get() is None

    def test_two_consumers_share_values(self):
        first = Consumer("x", lambda x: leaf())
        second = Consumer("x", lambda x: leaf())
        root = Root(NativeContainer(Vertical, first, second))
        root.launch()
        root.context.provide("x", "late")
        assert first.cells[0].get() == "late"
        assert second.cells[0].get() == "late"

    def test_later_updates_follow(self):
        consumer = Consumer("x", lambda x: leaf())
        root = Root(NativeContainer(Vertical, Provider("x", 1), consumer))
        root.launch()
        root.context.provide("x", 2)
        assert consumer.cells[0].get() == 2

    def test_multiple_identifiers(self):
        consumer = Consumer("a", "b", lambda a, b: leaf())
        Root(NativeContainer(Vertical, Provider("a", 1), Provider("b", 2), consumer)).launch()
        assert [cell.get() for cell in consumer.cells] == [1, 2]

    def test_child_completes_its_lifecycle(self):
        inner = leaf()
        Root(NativeContainer(Vertical, Provider("x", 1), Consumer("x", lambda x: inner))).launch()
        assert inner.phase is Phase.AFTER_CONSTRUCTION

    def test_child_can_bind_consumed_cell(self):
        class Gauge(Widget):
            level = reactive(0)

        gauge = None

        def build(level):
            nonlocal gauge
            gauge = Native(Gauge).bind("level", level)
            return gauge

        Root(NativeContainer(Vertical, Consumer("level", build), Provider("level", 3))).launch()
        assert gauge.native.level == 3

    def test_link_dropped_on_teardown(self):
        consumer = Consumer("x", lambda x: leaf())
        root = Root(NativeContainer(Vertical, Provider("x", 1), consumer))
        root.launch()
        stored = root.context.get("x")
        root.deconstruct()
        stored.set(2)
        assert consumer.cells[0].get() == 1

    def test_needs_an_identifier(self):
        with pytest.raises(ValueError):
            Consumer(lambda: leaf())

    def test_name(self):
        assert str(Consumer("a", "b", lambda a, b: leaf())) == "Consumer[a, b]"


class TestBinding:
    def test_iterable_identifiers(self):
        binding = Binding(["a", "b"], lambda a, b: leaf())
        Root(NativeContainer(Vertical, binding, Provider("a", "x"), Provider("b", "y"))).launch()
        assert [cell.get() for cell in binding.cells] == ["x", "y"]
        assert str(binding) == "Binding[a, b]"
