"""
预算分配模块 - Budget Allocation Module

按固定比例把总预算拆分为各类配件的预算信封。
Split a total budget into a fixed-percentage envelope per part category.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict


@dataclass(frozen=True)
class BudgetAllocation:
    """
    预算分配结果 - Budget Allocation Result

    各类配件的整数预算信封。信封非负，总和不超过总预算。
    Integer envelope per category; envelopes are non-negative and sum to at most the budget.

    字段说明 Field Descriptions:
    - cpu / gpu / motherboard / memory / storage / cooler / psu / case: 各类别预算
    - total_budget: 原始总预算 Original total budget
    """
    cpu: int
    gpu: int
    motherboard: int
    memory: int
    storage: int
    cooler: int
    psu: int
    case: int
    total_budget: int

    def to_dict(self) -> Dict[str, int]:
        """
        转换为字典 - Convert to Dictionary

        返回 Returns:
            类别到预算的映射（不含 total_budget）
            Category-to-envelope mapping (total_budget excluded)
        """
        return {category: getattr(self, category) for category in DEFAULT_BUDGET_WEIGHTS}

    def envelope(self, category: str) -> int:
        return self.to_dict()[category]

    def total(self) -> int:
        return sum(self.to_dict().values())

    @property
    def remainder(self) -> int:
        """四舍五入后未分配的余额 Unallocated remainder left by rounding"""
        return self.total_budget - self.total()


# 默认预算分配比例 - Default Budget Allocation Weights
DEFAULT_BUDGET_WEIGHTS = {
    "gpu": 0.35,
    "cpu": 0.20,
    "motherboard": 0.10,
    "memory": 0.08,
    "storage": 0.08,
    "psu": 0.08,
    "cooler": 0.06,
    "case": 0.05,
}
"""
默认预算分配权重 - Default Budget Allocation Weights

权重说明 Weight Descriptions:
- gpu: 35% - 显卡是游戏性能的主要来源
- cpu: 20%
- motherboard: 10%
- memory / storage / psu: 各 8%
- cooler: 6%
- case: 5%
"""


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def allocate_budget(
    total_budget: int,
    weights: Dict[str, float] | None = None,
) -> BudgetAllocation:
    """
    分配预算 - Allocate Budget

    每个信封 = round(总预算 × 比例)，四舍五入（0.5 进位）。
    如果进位导致总和超出预算，从进位最多的信封依次扣回 1，保证不会透支。
    Each envelope = round(total × weight), half-up. If rounding pushes the sum over
    the budget, units are taken back from the envelopes rounded up the most.

    参数 Parameters:
        total_budget: 总预算（正整数）
                      Total budget (positive integer)
        weights: 自定义比例，缺省使用 DEFAULT_BUDGET_WEIGHTS
                 Custom weights, DEFAULT_BUDGET_WEIGHTS when omitted

    返回 Returns:
        预算分配结果对象
        Budget allocation result object

    异常 Raises:
        ValueError: 预算非正，或比例之和超过 1
                    Non-positive budget, or weights summing above 1
    """
    if total_budget <= 0:
        raise ValueError(f"total budget must be positive, got {total_budget}")

    table = dict(DEFAULT_BUDGET_WEIGHTS)
    if weights:
        for key, value in weights.items():
            if key not in table:
                raise ValueError(f"unknown category in weights: {key}")
            table[key] = value
    weight_sum = sum(Decimal(str(w)) for w in table.values())
    if weight_sum > Decimal("1"):
        raise ValueError(f"budget weights sum to {weight_sum}, must not exceed 1.0")

    budget = Decimal(total_budget)
    exact = {c: budget * Decimal(str(w)) for c, w in table.items()}
    envelopes = {c: max(0, _round_half_up(v)) for c, v in exact.items()}

    # 进位修正 - Rounding correction
    overflow = sum(envelopes.values()) - total_budget
    if overflow > 0:
        by_rounding = sorted(
            envelopes,
            key=lambda c: envelopes[c] - exact[c],
            reverse=True,
        )
        for category in by_rounding:
            if overflow <= 0:
                break
            if envelopes[category] > 0:
                envelopes[category] -= 1
                overflow -= 1

    return BudgetAllocation(total_budget=total_budget, **envelopes)
