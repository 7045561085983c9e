import pytest

from rollup_core import Point, tree_layout
from rollup_core.layout import LayoutNode


def test_empty_layout():
    assert tree_layout([], 800, 600) == {}


def test_single_node_is_centered_on_breadth_axis():
    positions = tree_layout([LayoutNode("r")], 800, 600)
    assert positions == {"r": Point(40, 300)}


def test_root_with_two_children_horizontal():
    nodes = [
        LayoutNode("r", None, 0, ["a", "b"]),
        LayoutNode("a", "r", 1),
        LayoutNode("b", "r", 1),
    ]
    positions = tree_layout(nodes, 800, 600)
    # depth axis: 800 - 40 - 120 = 640 wide; breadth axis: 600 - 20 - 20 = 560 tall
    assert positions["r"] == Point(40, 300)
    assert positions["a"] == Point(680, 20)
    assert positions["b"] == Point(680, 580)


def test_vertical_orientation_swaps_axes():
    nodes = [
        LayoutNode("r", None, 0, ["a", "b"]),
        LayoutNode("a", "r", 1),
        LayoutNode("b", "r", 1),
    ]
    positions = tree_layout(nodes, 800, 600, orientation="vertical")
    assert positions["r"] == Point(40 + 640 / 2, 20)
    assert positions["a"] == Point(40, 580)
    assert positions["b"] == Point(680, 580)


def test_cousins_are_further_apart_than_siblings():
    nodes = [
        LayoutNode("r", None, 0, ["p", "q"]),
        LayoutNode("p", "r", 1, ["a", "b"]),
        LayoutNode("a", "p", 2),
        LayoutNode("b", "p", 2),
        LayoutNode("q", "r", 1, ["c"]),
        LayoutNode("c", "q", 2),
    ]
    positions = tree_layout(nodes, 800, 600, margin_top=0, margin_bottom=0)
    a, b, c = positions["a"].y, positions["b"].y, positions["c"].y
    assert a < b < c
    assert (c - b) == pytest.approx(2 * (b - a))
    # parents centered over their children
    assert positions["p"].y == pytest.approx((a + b) / 2)
    assert positions["q"].y == pytest.approx(c)
    assert positions["r"].y == pytest.approx((positions["p"].y + positions["q"].y) / 2)


def test_depths_are_evenly_spaced():
    nodes = [
        LayoutNode("r", None, 0, ["a"]),
        LayoutNode("a", "r", 1, ["b"]),
        LayoutNode("b", "a", 2),
    ]
    positions = tree_layout(nodes, 800, 600)
    assert [positions[k].x for k in "rab"] == [40, 360, 680]


def test_unknown_orientation():
    with pytest.raises(ValueError):
        tree_layout([LayoutNode("r")], 800, 600, orientation="radial")
