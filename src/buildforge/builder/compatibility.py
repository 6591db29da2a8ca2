"""兼容性检查模块

确定性规则：插槽、芯片组、内存、功耗、散热器扣具、机箱空间。
规则是纯函数，不记录日志、不抛出数据质量异常；无法判定时降级为警告。
"""

from __future__ import annotations

from itertools import combinations
from typing import TYPE_CHECKING, List, Optional

from ..schemas import BuildConfiguration, CompatibilityResult, CompatibilityRule, Component
from .extract import (
    baseline_power,
    canonical_socket,
    case_size,
    cpu_power,
    cpu_series,
    extract_capacity_gb,
    extract_chipset,
    extract_memory_speed,
    extract_memory_type,
    extract_psu_wattage,
    extract_socket,
    form_factor_rank,
    gpu_power,
    is_universal_cooler,
    loosely_matches,
    max_memory_capacity,
    max_memory_speed,
    memory_power,
    same_socket,
    supported_memory_types,
)
from .tables import COOLER_MOUNTS, FORM_FACTOR_RANK, GPU_CLEARANCE_BY_CASE_SIZE, HIGH_POWER_GPU, SOCKETS

if TYPE_CHECKING:
    from .overlay import ConfidenceOverlay


# 置信度达到该值的经验判断可以把散热器警告降为提示
COOLER_TRUST_CONFIDENCE = 0.5
LEARNED_WARNING_CONFIDENCE = 0.3


def _rule(type_: str, severity: str, message: str, details: Optional[str] = None) -> CompatibilityRule:
    return CompatibilityRule(type=type_, severity=severity, message=message, details=details)


def _by_category(first: Component, second: Component, category: str) -> Optional[Component]:
    if first.category == category:
        return first
    if second.category == category:
        return second
    return None


def _learned_details(overlay: Optional["ConfidenceOverlay"], name_a: str, name_b: str) -> Optional[str]:
    if overlay is None:
        return None
    learned = overlay.check_learned(name_a, name_b)
    verdict = "compatible" if learned.compatible else "incompatible"
    return f"learned: {verdict} (confidence {learned.confidence:.2f}, {learned.source})"


def minimum_wattage(draw: int) -> int:
    """draw × 1.1 向上取整"""
    return -(-draw * 11 // 10)


def recommended_wattage(draw: int) -> int:
    """draw × 1.2 向上取整"""
    return -(-draw * 6 // 5)


def check_socket(
    first: Component,
    second: Component,
    overlay: Optional["ConfidenceOverlay"] = None,
) -> List[CompatibilityRule]:
    """CPU 与主板插槽一致（参数顺序无关）

    Args:
        first, second: 一个 CPU 和一个主板，顺序任意
        overlay: 可选的经验层，插槽无法判定时附上经验判断

    Returns:
        规则列表；不是 CPU + 主板组合时为空
    """
    cpu = _by_category(first, second, "cpu")
    motherboard = _by_category(first, second, "motherboard")
    if cpu is None or motherboard is None:
        return []

    cpu_socket = extract_socket(cpu)
    board_socket = extract_socket(motherboard)
    if cpu_socket is None or board_socket is None:
        return [
            _rule(
                "socket",
                "warning",
                f"Could not verify socket compatibility between {cpu.name} and {motherboard.name}",
                _learned_details(overlay, cpu.name, motherboard.name),
            )
        ]
    if not same_socket(cpu_socket, board_socket):
        return [
            _rule(
                "socket",
                "critical",
                f"CPU socket {cpu_socket} does not match motherboard socket {board_socket}",
                f"{cpu.name} requires a {cpu_socket} motherboard",
            )
        ]
    return []


def check_chipset(cpu: Component, motherboard: Component) -> List[CompatibilityRule]:
    """芯片组 / CPU 代际检查，只在插槽一致时有意义；最多给出警告"""
    socket = extract_socket(cpu)
    if socket is None or not same_socket(socket, extract_socket(motherboard)):
        return []

    chipset = extract_chipset(motherboard)
    if chipset is None:
        return [
            _rule(
                "chipset",
                "warning",
                f"Could not determine the chipset of {motherboard.name}",
                f"verify that it supports {cpu.name}",
            )
        ]

    socket_chipsets = SOCKETS.get(socket, {}).get("chipsets", ())
    if socket_chipsets and not loosely_matches(chipset, socket_chipsets):
        return [
            _rule(
                "chipset",
                "warning",
                f"Chipset {chipset} is not a known {socket} chipset",
                f"known {socket} chipsets: {', '.join(socket_chipsets)}",
            )
        ]

    series = cpu_series(cpu)
    if series is not None:
        series_name, _, supported = series
        if not loosely_matches(chipset, supported):
            return [
                _rule(
                    "bios",
                    "warning",
                    f"{chipset} may need a BIOS update to support {series_name} processors",
                    f"{series_name} is supported out of the box by {', '.join(supported)}",
                )
            ]
    return []


def check_memory(memory: Component, motherboard: Component) -> List[CompatibilityRule]:
    """内存代际（致命）、频率（警告）、容量（致命）"""
    memory_type = extract_memory_type(memory)
    supported = supported_memory_types(motherboard)
    if memory_type is None or not supported:
        return [
            _rule(
                "memory",
                "warning",
                f"Could not verify memory compatibility between {memory.name} and {motherboard.name}",
            )
        ]
    if memory_type not in supported:
        return [
            _rule(
                "memory",
                "critical",
                f"{motherboard.name} supports {'/'.join(supported)}, but {memory.name} is {memory_type}",
            )
        ]

    rules: List[CompatibilityRule] = []
    speed = extract_memory_speed(memory)
    speed_limit = max_memory_speed(motherboard, memory_type)
    if speed and speed_limit and speed > speed_limit:
        rules.append(
            _rule(
                "memory",
                "warning",
                f"Memory speed {speed} MHz exceeds the platform maximum of {speed_limit} MHz",
                "the memory will run at a lower speed",
            )
        )

    capacity = extract_capacity_gb(memory)
    capacity_limit = max_memory_capacity(motherboard)
    if capacity and capacity_limit and capacity > capacity_limit:
        rules.append(
            _rule(
                "memory",
                "critical",
                f"Memory capacity {capacity} GB exceeds the platform maximum of {capacity_limit} GB",
            )
        )
    return rules


def estimate_power_draw(build: BuildConfiguration) -> int:
    """估算整机功耗(W)：CPU + 显卡 + 内存 + 固定基础功耗；未选的配件计 0"""
    draw = baseline_power()
    if build.cpu is not None:
        draw += cpu_power(build.cpu)
    if build.gpu is not None:
        draw += gpu_power(build.gpu)
    if build.memory is not None:
        draw += memory_power(build.memory)
    return draw


def check_power(psu: Component, draw: int) -> List[CompatibilityRule]:
    wattage = extract_psu_wattage(psu)
    if wattage is None:
        return [_rule("power", "warning", f"Could not determine the wattage of {psu.name}")]

    minimum = minimum_wattage(draw)
    recommended = recommended_wattage(draw)
    if wattage < minimum:
        return [
            _rule(
                "power",
                "critical",
                f"Power supply {wattage}W is insufficient for an estimated draw of {draw}W",
                f"at least {minimum}W required, {recommended}W recommended",
            )
        ]
    if wattage < recommended:
        return [
            _rule(
                "power",
                "warning",
                f"Power supply {wattage}W leaves little headroom for {draw}W",
                f"{recommended}W recommended",
            )
        ]
    return []


def check_cooler(
    cooler: Component,
    cpu: Component,
    overlay: Optional["ConfidenceOverlay"] = None,
) -> List[CompatibilityRule]:
    """散热器扣具是否支持 CPU 插槽

    声明了插槽且不匹配 -> 致命；通用型号 -> 提示；
    未声明插槽时参考经验层，可信的兼容判断降为提示，否则警告。
    """
    socket = extract_socket(cpu)
    if socket is None:
        return [
            _rule(
                "socket",
                "warning",
                f"Could not verify cooler compatibility: unknown socket for {cpu.name}",
                _learned_details(overlay, cooler.name, cpu.name),
            )
        ]

    if is_universal_cooler(cooler):
        return [_rule("socket", "info", f"{cooler.name} is a multi-socket cooler line and supports {socket}")]

    declared = [canonical_socket(s) for s in getattr(cooler.specs, "sockets", [])]
    if declared:
        accepted = COOLER_MOUNTS.get(socket, (socket,))
        if any(same_socket(mount, a) for mount in declared for a in accepted):
            return []
        return [
            _rule(
                "socket",
                "critical",
                f"{cooler.name} does not support socket {socket}",
                f"declared sockets: {', '.join(declared)}",
            )
        ]

    if overlay is not None:
        learned = overlay.check_learned(cooler.name, cpu.name)
        if learned.compatible and learned.confidence >= COOLER_TRUST_CONFIDENCE:
            return [
                _rule(
                    "socket",
                    "info",
                    f"{cooler.name} has been used with {cpu.name} in community builds",
                    f"confidence {learned.confidence:.2f}, {learned.source}",
                )
            ]
        return [
            _rule(
                "socket",
                "warning",
                f"Could not verify that {cooler.name} supports {socket}",
                _learned_details(overlay, cooler.name, cpu.name),
            )
        ]
    return [_rule("socket", "warning", f"Could not verify that {cooler.name} supports {socket}")]


def check_clearance(
    case: Component,
    gpu: Optional[Component] = None,
    cooler: Optional[Component] = None,
    motherboard: Optional[Component] = None,
) -> List[CompatibilityRule]:
    """机箱空间：显卡长度、风冷高度、主板板型。数据多为估计值，只给警告"""
    rules: List[CompatibilityRule] = []
    size = case_size(case)

    if gpu is not None:
        length = getattr(gpu.specs, "length_mm", None)
        limit = case.specs.max_gpu_length_mm or GPU_CLEARANCE_BY_CASE_SIZE[size]
        if length and length > limit:
            rules.append(
                _rule(
                    "physical",
                    "warning",
                    f"{gpu.name} ({length}mm) may not fit in {case.name} (max {limit}mm)",
                )
            )

    if cooler is not None and getattr(cooler.specs, "cooler_type", None) != "liquid":
        height = getattr(cooler.specs, "height_mm", None)
        limit = case.specs.max_cooler_height_mm
        if height and limit and height > limit:
            rules.append(
                _rule(
                    "physical",
                    "warning",
                    f"{cooler.name} ({height}mm) is taller than {case.name} allows ({limit}mm)",
                )
            )

    if motherboard is not None:
        board_rank = form_factor_rank(getattr(motherboard.specs, "form_factor", None))
        if board_rank is not None and board_rank > FORM_FACTOR_RANK[size]:
            rules.append(
                _rule(
                    "physical",
                    "warning",
                    f"{motherboard.name} ({motherboard.specs.form_factor}) may not fit in {case.name} ({size})",
                )
            )
    return rules


def evaluate(
    build: BuildConfiguration,
    overlay: Optional["ConfidenceOverlay"] = None,
) -> CompatibilityResult:
    """对部分或完整配置运行全部规则

    Args:
        build: 配置（未选类别跳过相关规则）
        overlay: 可选的经验层，只为无法判定的检查补充信息

    Returns:
        兼容性结果；compatible 当且仅当没有致命问题
    """
    rules: List[CompatibilityRule] = []
    cpu, motherboard, memory = build.cpu, build.motherboard, build.memory

    if cpu is not None and motherboard is not None:
        rules.extend(check_socket(cpu, motherboard, overlay))
        rules.extend(check_chipset(cpu, motherboard))
    if memory is not None and motherboard is not None:
        rules.extend(check_memory(memory, motherboard))

    draw = estimate_power_draw(build)
    if build.psu is not None:
        rules.extend(check_power(build.psu, draw))
    if build.gpu is not None and gpu_power(build.gpu) > HIGH_POWER_GPU:
        rules.append(
            _rule(
                "power",
                "info",
                f"{build.gpu.name} draws over {HIGH_POWER_GPU}W",
                "make sure the power supply has enough PCIe power connectors",
            )
        )

    if build.cooler is not None and cpu is not None:
        rules.extend(check_cooler(build.cooler, cpu, overlay))
    if build.case is not None:
        rules.extend(check_clearance(build.case, build.gpu, build.cooler, motherboard))

    issues = [r for r in rules if r.severity == "critical"]
    return CompatibilityResult(
        compatible=not issues,
        issues=issues,
        warnings=[r for r in rules if r.severity == "warning"],
        notes=[r for r in rules if r.severity == "info"],
        power_draw=draw,
        estimated_wattage=recommended_wattage(draw),
    )


def _learned_rule_type(first: Component, second: Component) -> str:
    categories = {first.category, second.category}
    if "memory" in categories:
        return "memory"
    if "psu" in categories:
        return "power"
    if categories <= {"cpu", "motherboard", "cooler"}:
        return "socket"
    return "physical"


def validate_build(
    build: BuildConfiguration,
    overlay: Optional["ConfidenceOverlay"] = None,
) -> CompatibilityResult:
    """验证完整配置 - 独立的兼容性报告入口

    在 evaluate 的基础上，把经验层中被社区判为不兼容的配对作为警告附上。
    用户手动替换配件后可直接调用，无需重新选型。
    """
    result = evaluate(build, overlay)
    if overlay is None:
        return result

    learned_warnings: List[CompatibilityRule] = []
    for first, second in combinations(list(build.components().values()), 2):
        learned = overlay.check_learned(first.name, second.name)
        if not learned.compatible and learned.confidence > LEARNED_WARNING_CONFIDENCE:
            learned_warnings.append(
                _rule(
                    _learned_rule_type(first, second),
                    "warning",
                    f"{first.name} and {second.name} were reported incompatible in community builds",
                    f"confidence {learned.confidence:.2f}, {learned.source}",
                )
            )
    if not learned_warnings:
        return result
    return result.model_copy(update={"warnings": result.warnings + learned_warnings})
