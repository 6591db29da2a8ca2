"""
配件选择模块 - Part Selection Module

候选打分与单类别选择。选择器按依赖顺序逐类调用这里的函数。
Candidate scoring and per-category choice; the selector calls these in dependency order.
"""

from __future__ import annotations

import math
import random
from typing import Iterable, List, Optional, Sequence, Tuple, TYPE_CHECKING

from ..errors import IncompatibleDependency, NoCandidateAvailable
from ..schemas import BuildConfiguration, Component
from .compatibility import estimate_power_draw, evaluate, minimum_wattage
from .extract import efficiency_tier, extract_psu_wattage

if TYPE_CHECKING:
    from .overlay import ConfidenceOverlay


AVAILABILITY_SCORES = {
    "in-stock": 0.3,
    "limited": 0.2,
    "out-of-stock": 0.0,
}

BRAND_SCORES = {
    "intel": 0.1,
    "amd": 0.1,
    "nvidia": 0.1,
    "samsung": 0.1,
    "asus": 0.08,
    "msi": 0.08,
    "gigabyte": 0.08,
    "corsair": 0.08,
    "g.skill": 0.08,
}
DEFAULT_BRAND_SCORE = 0.05

EFFICIENCY_BONUS = {
    "gold": 0.1,
    "platinum": 0.15,
    "titanium": 0.2,
}

# 新发现 > 静态目录 > 社区装机单
SOURCE_PRIORITY = {
    "discovered": 2,
    "catalog": 1,
    "community": 0,
}

MAX_JITTER = 0.05
WARNING_PENALTY = 0.1


def budget_fit(price: int, envelope: int) -> float:
    """
    预算契合度 - Budget fit

    不超预算时越接近信封越好（最高 0.5）；超预算按超出比例衰减（最高 0.3）。
    Under budget: closer to the envelope is better (max 0.5); over budget decays (max 0.3).
    """
    if envelope <= 0:
        return 0.0
    if price <= envelope:
        return price / envelope * 0.5
    return max(0.0, 1 - (price - envelope) / envelope) * 0.3


def brand_score(brand: str) -> float:
    return BRAND_SCORES.get(brand.strip().lower(), DEFAULT_BRAND_SCORE)


def _jitter(rng: Optional[random.Random]) -> float:
    return rng.random() * MAX_JITTER if rng is not None else 0.0


def score_candidate(
    component: Component,
    region: str,
    envelope: int,
    rng: Optional[random.Random] = None,
) -> float:
    """
    候选打分 - Score a candidate

    预算契合 + 库存 + 品牌 + 随机扰动（rng 为 None 时不扰动，便于测试）。
    """
    return (
        budget_fit(component.price_in(region), envelope)
        + AVAILABILITY_SCORES[component.availability]
        + brand_score(component.brand)
        + _jitter(rng)
    )


def headroom_bonus(wattage: int, draw: int) -> float:
    if draw <= 0:
        return 0.0
    headroom = (wattage - draw) / draw
    if 0.2 <= headroom <= 0.5:
        return 0.2
    if headroom > 0.5:
        return 0.1
    return 0.0


def score_psu(
    psu: Component,
    region: str,
    draw: int,
    price_limit: int,
    rng: Optional[random.Random] = None,
) -> Optional[float]:
    """
    电源打分 - Score a power supply

    功率不足最低要求时返回 None。便宜、余量 20-50%、高能效认证加分。
    None when the wattage misses the minimum; cheaper, 20-50% headroom and better
    efficiency tiers score higher.
    """
    wattage = extract_psu_wattage(psu)
    if wattage is None or wattage < minimum_wattage(draw):
        return None
    price = psu.price_in(region)
    cheapness = max(0.0, 0.3 * (1 - price / price_limit)) if price_limit > 0 else 0.0
    return (
        AVAILABILITY_SCORES[psu.availability]
        + brand_score(psu.brand)
        + headroom_bonus(wattage, draw)
        + EFFICIENCY_BONUS.get(efficiency_tier(psu), 0.0)
        + cheapness
        + _jitter(rng)
    )


def rank_candidates(
    scored: Iterable[Tuple[float, Component]],
    region: str,
) -> List[Tuple[float, Component]]:
    """按分数降序；同分按来源优先级，再按价格、id 保证确定性"""
    return sorted(
        scored,
        key=lambda item: (
            -item[0],
            -SOURCE_PRIORITY.get(item[1].source, 0),
            item[1].price_in(region),
            item[1].id,
        ),
    )


def in_stock(candidates: Iterable[Component], allow_limited: bool = False) -> List[Component]:
    accepted = {"in-stock", "limited"} if allow_limited else {"in-stock"}
    return [c for c in candidates if c.availability in accepted]


def price_tiers(
    candidates: Sequence[Component],
    region: str,
    envelope: int,
    widen_factor: float,
) -> List[Tuple[int, List[Component]]]:
    """先在信封内，再放宽到信封 × widen_factor；两档互不重叠"""
    widened = math.ceil(envelope * widen_factor)
    first = [c for c in candidates if c.price_in(region) <= envelope]
    second = [c for c in candidates if envelope < c.price_in(region) <= widened]
    tiers = [(envelope, first)]
    if widened > envelope:
        tiers.append((widened, second))
    return tiers


def _best(
    scored: List[Tuple[float, Component]],
    region: str,
) -> Optional[Component]:
    ranked = rank_candidates(scored, region)
    return ranked[0][1] if ranked else None


def choose_component(
    category: str,
    candidates: Sequence[Component],
    build: BuildConfiguration,
    region: str,
    envelope: int,
    *,
    widen_factor: float = 1.5,
    allow_limited: bool = False,
    overlay: Optional["ConfidenceOverlay"] = None,
    rng: Optional[random.Random] = None,
) -> Component:
    """
    选择某类别的配件 - Choose a part for one category

    只接受不会给当前部分配置新增致命问题的候选；每新增一条警告扣 0.1 分。
    Only candidates that add no critical issue to the partial build are accepted;
    each new warning costs WARNING_PENALTY.

    异常 Raises:
        IncompatibleDependency: 有买得起的候选，但都与已选配件冲突
        NoCandidateAvailable: 信封（含放宽）内没有有货的候选
    """
    stocked = in_stock(candidates, allow_limited)
    baseline = evaluate(build, overlay)
    considered = 0

    for _, tier in price_tiers(stocked, region, envelope, widen_factor):
        scored: List[Tuple[float, Component]] = []
        for candidate in tier:
            considered += 1
            result = evaluate(build.with_component(category, candidate), overlay)
            if len(result.issues) > len(baseline.issues):
                continue
            new_warnings = max(0, len(result.warnings) - len(baseline.warnings))
            score = score_candidate(candidate, region, envelope, rng) - WARNING_PENALTY * new_warnings
            scored.append((score, candidate))
        chosen = _best(scored, region)
        if chosen is not None:
            return chosen

    if considered:
        raise IncompatibleDependency(
            category,
            budget_envelope=envelope,
            candidates_considered=considered,
            detail="every affordable candidate conflicts with the parts already chosen",
        )
    raise NoCandidateAvailable(
        category,
        "unaffordable",
        budget_envelope=envelope,
        candidates_considered=len(stocked),
    )


def choose_psu(
    candidates: Sequence[Component],
    build: BuildConfiguration,
    region: str,
    envelope: int,
    *,
    widen_factor: float = 1.5,
    allow_limited: bool = False,
    rng: Optional[random.Random] = None,
) -> Component:
    """
    选择电源 - Choose the power supply

    按整机估算功耗筛掉功率不足的型号，在信封（或放宽后的信封）内挑分最高的。
    """
    draw = estimate_power_draw(build)
    stocked = in_stock(candidates, allow_limited)
    considered = 0

    for limit, tier in price_tiers(stocked, region, envelope, widen_factor):
        scored: List[Tuple[float, Component]] = []
        for candidate in tier:
            considered += 1
            score = score_psu(candidate, region, draw, limit, rng)
            if score is not None:
                scored.append((score, candidate))
        chosen = _best(scored, region)
        if chosen is not None:
            return chosen

    if considered:
        raise NoCandidateAvailable(
            "psu",
            "incompatible",
            budget_envelope=envelope,
            candidates_considered=considered,
            detail=f"no affordable supply reaches {minimum_wattage(draw)}W",
        )
    raise NoCandidateAvailable(
        "psu",
        "unaffordable",
        budget_envelope=envelope,
        candidates_considered=len(stocked),
    )

