"""
预算分配节点 - Budget Allocation Node

把总预算拆成各类别的预算信封，并初始化空配置。
Split the total budget into per-category envelopes and start an empty build.
"""

from __future__ import annotations

import logging

from ..builder.budget import allocate_budget
from ..schemas import BuildConfiguration

logger = logging.getLogger(__name__)


def allocate_node(state: dict) -> dict:
    """
    预算分配节点入口函数 - Budget Allocation Node Entry Function

    参数 Parameters:
        state: 当前状态字典，需要 total_budget
               Current state dictionary, requires total_budget

    返回 Returns:
        包含 allocation、空 build 与空 unselected 的状态更新
        State update with the allocation, an empty build and no unselected categories
    """
    allocation = allocate_budget(state["total_budget"])
    logger.info(
        "allocated budget %d in %s: %s (remainder %d)",
        allocation.total_budget,
        state.get("region", "US"),
        allocation.to_dict(),
        allocation.remainder,
    )
    return {
        "allocation": allocation,
        "build": BuildConfiguration(),
        "unselected": {},
    }
