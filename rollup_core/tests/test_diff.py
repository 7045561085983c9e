from rollup_core import Point, diff, plan_transition, Phase


def test_diff_classifies_keys():
    old = {"a": Point(0, 0), "b": Point(1, 1)}
    new = {"b": Point(2, 2), "c": Point(3, 3)}
    result = diff(old, new)
    assert result.entering == ("c",)
    assert result.updating == ("b",)
    assert result.exiting == ("a",)
    assert result.phase_of("a") == Phase.EXIT
    assert result.phase_of("zzz") is None


def test_diff_of_identical_maps_only_updates():
    positions = {"a": Point(0, 0), "b": Point(1, 1)}
    result = diff(positions, dict(positions))
    assert result.entering == ()
    assert result.exiting == ()
    assert result.updating == ("a", "b")


def test_entering_nodes_start_at_parents_previous_position():
    old = {"r": Point(0, 0), "p": Point(10, 10)}
    old_parents = {"r": None, "p": "r"}
    new = {"r": Point(0, 5), "p": Point(20, 20), "c": Point(30, 30)}
    new_parents = {"r": None, "p": "r", "c": "p"}

    result, motions = plan_transition(old, old_parents, new, new_parents, "r")
    assert result.entering == ("c",)
    assert motions["c"].start == Point(10, 10)
    assert motions["c"].end == Point(30, 30)
    assert motions["p"].phase == Phase.UPDATE
    assert motions["p"].start == Point(10, 10)


def test_entering_grandchild_starts_at_nearest_drawn_ancestor():
    old = {"r": Point(0, 0)}
    new = {"r": Point(0, 0), "p": Point(10, 0), "c": Point(20, 0)}
    new_parents = {"r": None, "p": "r", "c": "p"}
    _, motions = plan_transition(old, {"r": None}, new, new_parents, "r")
    assert motions["p"].start == Point(0, 0)
    assert motions["c"].start == Point(0, 0)


def test_first_render_enters_in_place():
    new = {"r": Point(0, 0), "c": Point(5, 5)}
    _, motions = plan_transition({}, {}, new, {"r": None, "c": "r"}, "r")
    assert all(m.is_still for m in motions.values())
    assert all(m.phase == Phase.ENTER for m in motions.values())


def test_exiting_nodes_move_to_parents_new_position():
    old = {"r": Point(0, 0), "p": Point(10, 10), "c": Point(20, 20)}
    old_parents = {"r": None, "p": "r", "c": "p"}
    new = {"r": Point(0, 0), "p": Point(15, 15)}
    new_parents = {"r": None, "p": "r"}

    result, motions = plan_transition(old, old_parents, new, new_parents, "r")
    assert result.exiting == ("c",)
    assert motions["c"].start == Point(20, 20)
    assert motions["c"].end == Point(15, 15)


def test_exiting_subtree_collapses_into_nearest_remaining_ancestor():
    old = {"r": Point(0, 0), "p": Point(10, 10), "c": Point(20, 20)}
    old_parents = {"r": None, "p": "r", "c": "p"}
    new = {"r": Point(1, 1)}

    _, motions = plan_transition(old, old_parents, new, {"r": None}, "r")
    assert motions["p"].end == Point(1, 1)
    assert motions["c"].end == Point(1, 1)


def test_exiting_without_any_drawn_ancestor_goes_to_root():
    old = {"x": Point(10, 10)}
    new = {"r": Point(3, 4)}
    _, motions = plan_transition(old, {"x": None}, new, {"r": None}, "r")
    assert motions["x"].end == Point(3, 4)


def test_everything_exits_into_place_when_nothing_remains():
    old = {"r": Point(1, 2)}
    result, motions = plan_transition(old, {"r": None}, {}, {}, None)
    assert result.exiting == ("r",)
    assert motions["r"].end == Point(1, 2)
