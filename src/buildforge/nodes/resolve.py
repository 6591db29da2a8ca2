"""
配件解析节点 - Part Resolution Nodes

按依赖顺序逐类选择配件：CPU -> 主板 -> 内存 -> 其余配件 -> 电源。
依赖链（CPU/主板/内存）选不出来是致命错误；其余类别降级为"未选"并记录原因。
Resolve categories in dependency order. A shortage in the cpu/motherboard/memory
chain is fatal; other categories are left unselected with a reason.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, List, Sequence, Tuple

from ..builder.picker import choose_component, choose_psu
from ..catalog import CatalogAdapter
from ..errors import NoCandidateAvailable
from ..schemas import BuildConfiguration, Component
from .state import SelectionContext

logger = logging.getLogger(__name__)


CHAIN_CATEGORIES = ("cpu", "motherboard", "memory")
# 顺序有意义：机箱在显卡、散热器之后，才能检查空间
PERIPHERAL_CATEGORIES = ("gpu", "storage", "cooler", "case")


def fetch_candidates_concurrently(
    catalog: CatalogAdapter,
    categories: Sequence[str],
    region: str,
    workers: int,
    timeout: float,
) -> Tuple[Dict[str, List[Component]], Dict[str, str]]:
    """
    并发获取候选 - Fetch candidates concurrently

    互不依赖的类别并发查询目录；超时或失败的类别不阻塞其他类别。
    Independent categories are fetched in parallel; a slow or failing fetch
    does not hold back the others.

    返回 Returns:
        (类别 -> 候选列表, 类别 -> 失败原因)
        (category -> candidates, category -> failure reason)
    """
    executor = ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix="catalog-fetch")
    try:
        futures = {
            executor.submit(catalog.get_candidates, category, region): category
            for category in categories
        }
        done, _ = wait(futures, timeout=timeout)
        fetched: Dict[str, List[Component]] = {}
        failures: Dict[str, str] = {}
        for future, category in futures.items():
            if future not in done:
                failures[category] = str(
                    NoCandidateAvailable(category, "timeout", detail=f"catalog fetch exceeded {timeout}s")
                )
                logger.warning("catalog fetch for %s timed out after %.1fs", category, timeout)
                continue
            try:
                fetched[category] = future.result()
            except Exception as err:
                failures[category] = f"catalog fetch failed: {err}"
                logger.warning("catalog fetch for %s failed: %s", category, err)
        return fetched, failures
    finally:
        # 放弃仍在运行的查询
        executor.shutdown(wait=False, cancel_futures=True)


def resolve_chain_category(category: str, state: dict) -> Component:
    """
    解析依赖链上的类别 - Resolve a dependency-chain category

    异常 Raises:
        NoCandidateAvailable: 没有可负担或兼容的候选，整个选型失败
    """
    context: SelectionContext = state["context"]
    build: BuildConfiguration = state["build"]
    region = state["region"]
    envelope = state["allocation"].envelope(category)

    candidates = context.catalog.get_candidates(category, region)
    chosen = choose_component(
        category,
        candidates,
        build,
        region,
        envelope,
        widen_factor=context.settings.budget_widen_factor,
        allow_limited=context.settings.allow_limited_stock,
        overlay=context.overlay,
        rng=context.rng,
    )
    logger.info("selected %s: %s (%d %s)", category, chosen.name, chosen.price_in(region), region)
    return chosen


def _chain_node(category: str, state: dict) -> dict:
    chosen = resolve_chain_category(category, state)
    return {"build": state["build"].with_component(category, chosen)}


def resolve_cpu_node(state: dict) -> dict:
    return _chain_node("cpu", state)


def resolve_motherboard_node(state: dict) -> dict:
    return _chain_node("motherboard", state)


def resolve_memory_node(state: dict) -> dict:
    return _chain_node("memory", state)


def resolve_peripherals_node(state: dict) -> dict:
    """
    解析其余配件节点 - Peripheral Resolution Node

    显卡、存储、散热器、机箱的候选并发获取，再按顺序逐个选择并检查与已选配件的兼容性。
    选不出来的类别记入 unselected，不中断选型。
    """
    context: SelectionContext = state["context"]
    build: BuildConfiguration = state["build"]
    region = state["region"]
    allocation = state["allocation"]
    unselected = dict(state.get("unselected") or {})

    fetched, failures = fetch_candidates_concurrently(
        context.catalog,
        PERIPHERAL_CATEGORIES,
        region,
        workers=context.settings.fetch_workers,
        timeout=context.settings.fetch_timeout_seconds,
    )
    unselected.update(failures)

    for category in PERIPHERAL_CATEGORIES:
        if category not in fetched:
            continue
        try:
            chosen = choose_component(
                category,
                fetched[category],
                build,
                region,
                allocation.envelope(category),
                widen_factor=context.settings.budget_widen_factor,
                allow_limited=context.settings.allow_limited_stock,
                overlay=context.overlay,
                rng=context.rng,
            )
        except NoCandidateAvailable as err:
            logger.warning("leaving %s unselected: %s", category, err)
            unselected[category] = str(err)
            continue
        logger.info("selected %s: %s (%d %s)", category, chosen.name, chosen.price_in(region), region)
        build = build.with_component(category, chosen)

    return {"build": build, "unselected": unselected}


def resolve_psu_node(state: dict) -> dict:
    """
    电源解析节点 - PSU Resolution Node

    最后选择电源，按整机估算功耗确定最低功率。
    """
    context: SelectionContext = state["context"]
    build: BuildConfiguration = state["build"]
    region = state["region"]
    unselected = dict(state.get("unselected") or {})

    try:
        candidates = context.catalog.get_candidates("psu", region)
        chosen = choose_psu(
            candidates,
            build,
            region,
            state["allocation"].envelope("psu"),
            widen_factor=context.settings.budget_widen_factor,
            allow_limited=context.settings.allow_limited_stock,
            rng=context.rng,
        )
    except NoCandidateAvailable as err:
        logger.warning("leaving psu unselected: %s", err)
        unselected["psu"] = str(err)
        return {"unselected": unselected}

    logger.info("selected psu: %s (%d %s)", chosen.name, chosen.price_in(region), region)
    return {"build": build.with_component("psu", chosen), "unselected": unselected}
