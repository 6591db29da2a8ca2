from __future__ import annotations

import logging
import random
from typing import Optional

from langgraph.graph import END, StateGraph

from .builder.overlay import ConfidenceOverlay
from .catalog import CatalogAdapter
from .config import EngineSettings
from .nodes import (
    SelectionContext,
    SelectionState,
    allocate_node,
    report_node,
    resolve_cpu_node,
    resolve_memory_node,
    resolve_motherboard_node,
    resolve_peripherals_node,
    resolve_psu_node,
)
from .schemas import SUPPORTED_REGIONS, BuildResult

logger = logging.getLogger(__name__)


class BuildSelector:
    """
    按预算和地区选出一套互相兼容的配置

    贪心、按依赖顺序、不回溯：先选定的 CPU 可能导致后面没有兼容的主板，此时直接失败。
    Greedy and dependency-ordered without backtracking: a committed CPU that leaves
    no compatible motherboard fails the whole selection.
    """

    def __init__(
        self,
        catalog: CatalogAdapter,
        overlay: Optional[ConfidenceOverlay] = None,
        settings: Optional[EngineSettings] = None,
        jitter: bool = True,
    ):
        self.catalog = catalog
        self.overlay = overlay
        self.settings = settings or EngineSettings()
        # jitter=False 时去掉随机扰动，同样输入得到同样结果
        self.rng = random.Random(self.settings.selection_seed) if jitter else None
        self.graph = self._build_graph()

    def _build_graph(self):
        builder = StateGraph(SelectionState)
        builder.add_node("allocate", allocate_node)
        builder.add_node("resolve_cpu", resolve_cpu_node)
        builder.add_node("resolve_motherboard", resolve_motherboard_node)
        builder.add_node("resolve_memory", resolve_memory_node)
        builder.add_node("resolve_peripherals", resolve_peripherals_node)
        builder.add_node("resolve_psu", resolve_psu_node)
        builder.add_node("report", report_node)

        builder.set_entry_point("allocate")
        builder.add_edge("allocate", "resolve_cpu")
        builder.add_edge("resolve_cpu", "resolve_motherboard")
        builder.add_edge("resolve_motherboard", "resolve_memory")
        builder.add_edge("resolve_memory", "resolve_peripherals")
        builder.add_edge("resolve_peripherals", "resolve_psu")
        builder.add_edge("resolve_psu", "report")
        builder.add_edge("report", END)

        return builder.compile()

    def select(self, total_budget: int, region: str = "US") -> BuildResult:
        """
        Args:
            total_budget: 总预算（正整数）
            region: 地区代码

        Returns:
            配置、未选类别及原因、兼容性报告

        Raises:
            ValueError: 预算非正或地区不支持
            NoCandidateAvailable: CPU / 主板 / 内存选不出来
        """
        if region not in SUPPORTED_REGIONS:
            raise ValueError(f"unsupported region: {region}")
        if total_budget <= 0:
            raise ValueError(f"total budget must be positive, got {total_budget}")

        context = SelectionContext(
            catalog=self.catalog,
            settings=self.settings,
            overlay=self.overlay,
            rng=self.rng,
        )
        logger.info("selecting build for budget %d in %s", total_budget, region)
        out = self.graph.invoke(
            {
                "total_budget": total_budget,
                "region": region,
                "context": context,
            }
        )

        build = out["build"]
        return BuildResult(
            region=region,
            total_budget=total_budget,
            allocation=out["allocation"].to_dict(),
            build=build,
            compatibility=out["compatibility"],
            unselected=out.get("unselected", {}),
            total_price=build.total_price(region),
        )
