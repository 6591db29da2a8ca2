"""Nodes 模块：选型流程节点"""

from .allocate import allocate_node
from .report import report_node
from .resolve import (
    fetch_candidates_concurrently,
    resolve_cpu_node,
    resolve_memory_node,
    resolve_motherboard_node,
    resolve_peripherals_node,
    resolve_psu_node,
)
from .state import SelectionContext, SelectionState

__all__ = [
    "allocate_node",
    "report_node",
    "fetch_candidates_concurrently",
    "resolve_cpu_node",
    "resolve_memory_node",
    "resolve_motherboard_node",
    "resolve_peripherals_node",
    "resolve_psu_node",
    "SelectionContext",
    "SelectionState",
]
