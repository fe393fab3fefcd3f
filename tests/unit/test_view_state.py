"""Unit tests for the interaction view state."""

import pytest

from cardnet.graph import NodeFilter, build_graph
from cardnet.interaction import Transform, ViewState
from cardnet.models import CardCategory
from helpers import NOW, make_card, make_rel


@pytest.fixture
def graph():
    cards = [make_card("a"), make_card("b"), make_card("c"), make_card("d")]
    return build_graph(cards, [make_rel("a", "b"), make_rel("c", "a")], now=NOW)


class TestViewport:
    """Tests for pan and zoom."""

    def test_pan(self) -> None:
        view = ViewState()
        view.pan(10, -5)
        view.pan(2.5, 0)
        assert (view.transform.x, view.transform.y) == (12.5, -5)

    def test_wheel_zoom(self) -> None:
        """Test scrolling down zooms out and scrolling up zooms in."""
        view = ViewState()
        assert view.zoom_wheel(120).scale == pytest.approx(0.9)
        view = ViewState()
        assert view.zoom_wheel(-120).scale == pytest.approx(1.1)

    def test_button_zoom(self) -> None:
        view = ViewState()
        view.zoom_in()
        assert view.transform.scale == pytest.approx(1.2)
        view.zoom_out()
        assert view.transform.scale == pytest.approx(1.0)

    def test_scale_is_clamped(self) -> None:
        view = ViewState()
        for _ in range(50):
            view.zoom_in()
        assert view.transform.scale == 3.0
        for _ in range(50):
            view.zoom_wheel(1)
        assert view.transform.scale == 0.2


class TestSelection:
    """Tests for selection, hover and pruning."""

    def test_select_highlights_neighbours(self, graph) -> None:
        view = ViewState()
        assert view.select("a", graph) == {"b", "c"}
        assert view.selected_node == "a"
        assert "a" not in view.highlighted_nodes

    def test_select_isolated_node(self, graph) -> None:
        view = ViewState()
        assert view.select("d", graph) == set()

    def test_select_unknown_node_clears_selection(self, graph) -> None:
        view = ViewState()
        view.select("a", graph)

        assert view.select("zz", graph) == set()
        assert view.selected_node is None
        assert view.highlighted_nodes == set()

    def test_prune_removed_node(self, graph) -> None:
        """Test selection and hover of nodes dropped by a rebuild are cleared."""
        view = ViewState()
        view.select("a", graph)
        view.hover("a")

        smaller = build_graph([make_card("b"), make_card("c")], [], now=NOW)
        view.prune(smaller)

        assert view.selected_node is None
        assert view.highlighted_nodes == set()
        assert view.hovered_node is None

    def test_prune_refreshes_highlights(self, graph) -> None:
        view = ViewState()
        view.select("a", graph)
        rebuilt = build_graph(
            [make_card("a"), make_card("b"), make_card("c")], [make_rel("a", "b")], now=NOW
        )
        view.prune(rebuilt)
        assert view.selected_node == "a"
        assert view.highlighted_nodes == {"b"}

    def test_reset(self, graph) -> None:
        view = ViewState()
        view.zoom_in()
        view.pan(5, 5)
        view.select("a", graph)
        view.toggle_clusters()

        view.reset()

        assert view.transform == Transform()
        assert view.selected_node is None
        assert view.show_clusters is False


class TestFilters:
    """Tests for tag and type filter toggles."""

    def test_toggle_tag(self) -> None:
        view = ViewState()
        assert view.toggle_tag_filter("ux") == ["ux"]
        assert view.toggle_tag_filter("ops") == ["ux", "ops"]
        assert view.toggle_tag_filter("ux") == ["ops"]

    def test_toggle_type_accepts_strings(self) -> None:
        view = ViewState()
        assert view.toggle_type_filter("THEMES") == [CardCategory.THEMES]
        assert view.toggle_type_filter(CardCategory.THEMES) == []

    def test_node_filter_composition(self) -> None:
        """Test toggles override the base filter on their own axis only."""
        base = NodeFilter(types=frozenset({CardCategory.INSIGHTS}), tags=frozenset({"ux"}))
        view = ViewState()
        assert view.node_filter(base) == base

        view.toggle_tag_filter("pricing")
        combined = view.node_filter(base)
        assert combined.tags == frozenset({"pricing"})
        assert combined.types == frozenset({CardCategory.INSIGHTS})

    def test_to_dict(self, graph) -> None:
        view = ViewState()
        view.select("a", graph)
        view.toggle_type_filter("INBOX")
        data = view.to_dict()
        assert data["highlighted_nodes"] == ["b", "c"]
        assert data["type_filters"] == ["INBOX"]
        assert data["transform"]["scale"] == 1.0
