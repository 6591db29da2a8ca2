"""
兼容性报告节点 - Compatibility Report Node

对选好的整机运行一次完整的兼容性检查。
Run the full rule set once over the finished build.
"""

from __future__ import annotations

import logging

from ..builder.compatibility import validate_build

logger = logging.getLogger(__name__)


def report_node(state: dict) -> dict:
    """
    兼容性报告节点入口函数 - Compatibility Report Node Entry Function

    返回 Returns:
        包含 compatibility 的状态更新
        State update containing the compatibility result
    """
    context = state["context"]
    result = validate_build(state["build"], context.overlay)
    logger.info(
        "build report: compatible=%s, %d issues, %d warnings, draw %dW, recommended %dW",
        result.compatible,
        len(result.issues),
        len(result.warnings),
        result.power_draw,
        result.estimated_wattage,
    )
    return {"compatibility": result}
