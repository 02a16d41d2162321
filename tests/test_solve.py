import json
import time

import numpy as np
import pytest

from pillengine.errors import InvalidInput
from pillengine.schemas import parse_request
from pillengine.solve import solve, solve_json, solve_many
from pillengine.types import CalculationInput, PillRenderData
from pillengine.validation import validate_input


def make_input(weekly_dose, pills, allow_half=False, **kw):
    return CalculationInput(weekly_dose=weekly_dose, allow_half=allow_half,
                            available_pills=frozenset(pills), **kw)


CASES = [
    make_input(21.0, {1, 2, 3, 5}),
    make_input(25.0, {1, 2, 3, 5}),
    make_input(25.0, {1, 2, 3, 5}, special_day_pattern="FriSun"),
    make_input(35.0, {1, 5}),
    make_input(17.5, {1, 2, 5}, allow_half=True),
    make_input(3.0, {1}, allow_half=True),
    make_input(42.5, {1, 2, 3, 4, 5, 6, 7, 10}, allow_half=True, days_until_appointment=30),
]


def test_21mg_top_result_is_one_3mg_tablet_daily():
    results = solve(make_input(21.0, {1, 2, 3, 5}))

    top = results[0]
    assert np.isclose(top.weekly_dose_actual, 21.0)
    for day in top.weekly_schedule:
        assert day.pills == (PillRenderData(mg=3, count=1, is_half=False),)
        assert np.isclose(day.total_dose, 3.0)


def test_35mg_top_result_is_5mg_daily():
    top = solve(make_input(35.0, {1, 5}))[0]
    assert all(day.pills == (PillRenderData(5, 1, False),) for day in top.weekly_schedule)
    assert top.description.startswith("5 mg daily")


def test_3mg_from_5mg_tablets_is_infeasible():
    assert solve(make_input(3.0, {5})) == []


@pytest.mark.parametrize("weekly_dose", [0.0, -5.0, float("nan"), float("inf")])
def test_non_positive_or_non_finite_dose_is_empty(weekly_dose):
    assert solve(make_input(weekly_dose, {1, 5})) == []


def test_empty_pill_set_is_empty():
    assert solve(make_input(21.0, set())) == []


def test_strict_mode_raises_invalid_input():
    with pytest.raises(InvalidInput) as exc:
        solve(make_input(-1.0, {1}), strict=True)
    assert exc.value.field == "weekly_dose"

    with pytest.raises(InvalidInput) as exc:
        solve(make_input(21.0, {1}, special_day_pattern="TueThu"), strict=True)
    assert exc.value.field == "special_day_pattern"


def test_invalid_input_message_names_the_field():
    with pytest.raises(InvalidInput) as exc:
        validate_input(make_input(-1.0, {1}))
    assert exc.value.reason == "must be > 0 (got -1.0)."
    assert str(exc.value) == "weekly_dose: must be > 0 (got -1.0)."


@pytest.mark.parametrize("kw, field", [
    ({"start_day_of_week": 7}, "start_day_of_week"),
    ({"days_until_appointment": -1}, "days_until_appointment"),
])
def test_validator_rejects_out_of_range_days(kw, field):
    with pytest.raises(InvalidInput) as exc:
        validate_input(make_input(21.0, {1}, **kw))
    assert exc.value.field == field


def test_validator_rejects_non_integer_strengths():
    with pytest.raises(InvalidInput) as exc:
        validate_input(make_input(21.0, {2.5}))
    assert exc.value.field == "available_pills"


@pytest.mark.parametrize("calc_input", CASES)
def test_day_totals_round_trip_to_weekly_actual(calc_input):
    results = solve(calc_input)
    assert results
    for out in results:
        assert len(out.weekly_schedule) == 7
        assert np.isclose(sum(d.total_dose for d in out.weekly_schedule), out.weekly_dose_actual, atol=0.01)
        assert np.isclose(out.weekly_dose_actual, calc_input.weekly_dose, atol=0.01)
        for day in out.weekly_schedule:
            assert all(p.mg in calc_input.available_pills for p in day.pills)
            if not calc_input.allow_half:
                assert not any(p.is_half for p in day.pills)


@pytest.mark.parametrize("calc_input", CASES)
def test_identical_input_identical_output(calc_input):
    assert solve(calc_input) == solve(calc_input)


def test_at_most_top_k_results():
    assert 1 <= len(solve(make_input(42.5, {1, 2, 3, 4, 5, 6, 7, 10}, allow_half=True))) <= 3


def test_200mg_terminates_quickly():
    """
    A high weekly dose either resolves within tolerance or comes back empty;
    with only 1 mg tablets (max 4 mg/day) it must be empty.
    """
    start = time.monotonic()
    for out in solve(make_input(200.0, {1, 2, 3, 5})):
        assert np.isclose(out.weekly_dose_actual, 200.0, atol=0.01)
    assert solve(make_input(200.0, {1})) == []
    assert time.monotonic() - start < 10.0


def test_many_strengths_do_not_exhaust_the_stack():
    """Strengths above the daily dose never enter the search, however many there are."""
    calc_input = make_input(21.0, range(1, 1201))
    assert validate_input(calc_input) is calc_input

    top = solve(calc_input)[0]
    assert all(day.pills == (PillRenderData(3, 1, False),) for day in top.weekly_schedule)


def test_off_grid_daily_dose_falls_through_to_pattern_split():
    """
    1000 mg/week is 142.86 mg/day, which no whole-tablet sum hits; the uniform
    search must give up at once so the pattern split (144 mg Mon/Wed/Fri,
    142 mg other days) is found without any stop day.
    """
    results = solve(make_input(1000.0, range(1, 16)))
    assert results
    for out in results:
        assert np.isclose(out.weekly_dose_actual, 1000.0, atol=0.01)
        assert not any(day.is_stop_day for day in out.weekly_schedule)


def test_solve_many_preserves_order():
    inputs = [make_input(21.0, {1, 2, 3, 5}), make_input(3.0, {5}), make_input(35.0, {1, 5})]
    results = solve_many(inputs, max_workers=3)
    assert results == [solve(i) for i in inputs]
    assert results[1] == []


def test_solve_json_round_trip():
    payload = json.dumps({"weekly_dose": 21, "available_pills": [1, 2, 3, 5],
                          "days_until_appointment": 14, "start_day_of_week": 2})
    body = json.loads(solve_json(payload))

    assert body["error"] is None
    top = body["options"][0]
    assert len(top["weekly_schedule"]) == 7
    assert top["weekly_schedule"][0]["day_name"] == "Mon"
    assert top["weekly_schedule"][0]["pills"] == [{"mg": 3, "count": 1, "is_half": False}]
    assert top["total_pills_message"] == "Weekly: 3 mg x 7; until appointment in 14 day(s): 3 mg x 14"


def test_solve_json_reports_invalid_requests():
    body = json.loads(solve_json({"weekly_dose": 21, "available_pills": [1],
                                  "special_day_pattern": "Weekends"}))
    assert body["options"] == []
    assert body["error"].startswith("special_day_pattern")

    body = json.loads(solve_json(b'{"weekly_dose": 21, "available_pills": ["abc"]}'))
    assert body["error"].startswith("available_pills")

    with pytest.raises(InvalidInput):
        solve_json('{"available_pills": [1]}', strict=True)


def test_parse_request_defaults():
    calc_input = parse_request({"weekly_dose": 10.5, "available_pills": [1, 2]})
    assert calc_input == make_input(10.5, {1, 2})
