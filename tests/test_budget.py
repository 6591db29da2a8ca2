import pytest

from buildforge.builder.budget import DEFAULT_BUDGET_WEIGHTS, allocate_budget


def test_allocation_for_1200():
    allocation = allocate_budget(1200)

    assert allocation.to_dict() == {
        "gpu": 420,
        "cpu": 240,
        "motherboard": 120,
        "memory": 96,
        "storage": 96,
        "psu": 96,
        "cooler": 72,
        "case": 60,
    }
    assert allocation.remainder == 0


def test_default_weights_sum_to_one():
    assert sum(DEFAULT_BUDGET_WEIGHTS.values()) == pytest.approx(1.0)


@pytest.mark.parametrize("budget", list(range(1, 400)) + [999, 1001, 1234, 2555, 99999])
def test_envelopes_never_exceed_budget(budget):
    allocation = allocate_budget(budget)

    assert all(v >= 0 for v in allocation.to_dict().values())
    assert allocation.total() <= budget
    assert allocation.remainder >= 0


def test_rounding_overflow_is_taken_back():
    # 13 × 各比例四舍五入后合计 14
    allocation = allocate_budget(13)

    assert allocation.total() == 13
    assert allocation.gpu == 4
    assert allocation.cpu == 3


def test_half_rounds_up():
    # 30 × 0.35 = 10.5, 30 × 0.05 = 1.5
    allocation = allocate_budget(30)
    assert allocation.gpu == 11
    assert allocation.case == 2
    assert allocation.total() == 30


@pytest.mark.parametrize("budget", [0, -1, -1200])
def test_non_positive_budget_rejected(budget):
    with pytest.raises(ValueError):
        allocate_budget(budget)


def test_custom_weights_validated():
    with pytest.raises(ValueError):
        allocate_budget(1000, {"monitor": 0.1})
    with pytest.raises(ValueError):
        allocate_budget(1000, {"gpu": 0.5})


def test_custom_weights_applied():
    allocation = allocate_budget(1000, {"gpu": 0.30, "cpu": 0.25})

    assert allocation.gpu == 300
    assert allocation.cpu == 250
    assert allocation.envelope("case") == 50
