"""Tests for per-constructor deltas between snapshots."""

from vibe_watchdog.core.delta import compute_constructor_delta


def _counts(threejs=None, game=None):
    return {"threejs": threejs or {}, "game": game or {}, "misc": {}}


def test_growth_is_positive():
    delta = compute_constructor_delta(_counts(threejs={"Mesh": 5}), _counts(threejs={"Mesh": 3}))
    assert delta["threejs"] == {"Mesh": 2}


def test_no_previous_reports_full_counts():
    current = _counts(threejs={"Scene": 1}, game={"Enemy": 4})
    assert compute_constructor_delta(current, None) == current


def test_unchanged_live_name_kept_vanished_name_reported():
    delta = compute_constructor_delta(
        _counts(threejs={"Mesh": 3}),
        _counts(threejs={"Mesh": 3}, game={"Foo": 1}),
    )
    assert delta["threejs"] == {"Mesh": 0}
    assert delta["game"] == {"Foo": -1}


def test_name_gone_on_both_sides_is_dropped():
    delta = compute_constructor_delta(_counts(game={"Foo": 0}), _counts(game={"Foo": 0}))
    assert delta["game"] == {}


def test_every_category_present_and_sorted():
    delta = compute_constructor_delta(_counts(game={"Zed": 1, "Alpha": 2}), {})
    assert list(delta) == ["threejs", "game", "misc"]
    assert list(delta["game"]) == ["Alpha", "Zed"]
    assert delta["misc"] == {}


def test_missing_categories_treated_as_empty():
    delta = compute_constructor_delta({"game": {"Enemy": 2}}, {"threejs": {"Scene": 1}})
    assert delta == {"threejs": {"Scene": -1}, "game": {"Enemy": 2}, "misc": {}}
