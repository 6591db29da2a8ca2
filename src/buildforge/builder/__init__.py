"""Builder 模块：预算分配、兼容性规则、经验层与配件选择"""

from .budget import allocate_budget, BudgetAllocation, DEFAULT_BUDGET_WEIGHTS
from .compatibility import (
    check_clearance,
    check_cooler,
    check_chipset,
    check_memory,
    check_power,
    check_socket,
    estimate_power_draw,
    evaluate,
    minimum_wattage,
    recommended_wattage,
    validate_build,
)
from .overlay import ConfidenceOverlay, InMemoryPatternStore, SQLitePatternStore
from .picker import choose_component, choose_psu, rank_candidates, score_candidate, score_psu

__all__ = [
    "allocate_budget",
    "BudgetAllocation",
    "DEFAULT_BUDGET_WEIGHTS",
    "check_clearance",
    "check_cooler",
    "check_chipset",
    "check_memory",
    "check_power",
    "check_socket",
    "estimate_power_draw",
    "evaluate",
    "minimum_wattage",
    "recommended_wattage",
    "validate_build",
    "ConfidenceOverlay",
    "InMemoryPatternStore",
    "SQLitePatternStore",
    "choose_component",
    "choose_psu",
    "rank_candidates",
    "score_candidate",
    "score_psu",
]
