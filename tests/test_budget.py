"""
tests/test_budget.py

Purpose:
    Call budget window accounting: limit gate, single reset per elapsed
    window, and the quota-free counting variant.
"""

from __future__ import annotations

import pytest

from cache.budget import BudgetExhausted, CallBudget


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_count_never_exceeds_limit_within_window():
    clock = _Clock()
    budget = CallBudget(3, 60, clock=clock)

    made = 0
    for _ in range(10):
        if budget.can_call():
            budget.record_call()
            made += 1
        assert budget.count <= budget.limit

    assert made == 3
    assert budget.remaining() == 0
    with pytest.raises(BudgetExhausted):
        budget.record_call()
    assert budget.count == 3
    assert budget.total_calls == 3


def test_window_resets_exactly_once_after_elapsing():
    clock = _Clock()
    budget = CallBudget(2, 60, clock=clock)
    budget.record_call()
    budget.record_call()
    assert not budget.can_call()

    clock.now += 59
    assert not budget.can_call()

    clock.now += 1
    assert budget.can_call()
    assert budget.count == 0
    first_reset_start = budget.window_start
    assert first_reset_start == clock.now

    budget.record_call()
    clock.now += 30
    assert budget.can_call()
    assert budget.window_start == first_reset_start
    assert budget.count == 1
    assert budget.total_calls == 3


def test_unbounded_budget_only_counts():
    budget = CallBudget(0, 60, clock=_Clock())
    for _ in range(50):
        assert budget.can_call()
        budget.record_call()
    assert budget.limit is None
    assert not budget.bounded
    assert budget.remaining() is None
    assert budget.total_calls == 50


def test_to_dict_reports_window_state():
    budget = CallBudget(5, 3600, clock=_Clock())
    budget.record_call()
    out = budget.to_dict()
    assert out["count"] == 1
    assert out["limit"] == 5
    assert out["remaining"] == 4
    assert out["totalCalls"] == 1
    assert out["windowSeconds"] == 3600
