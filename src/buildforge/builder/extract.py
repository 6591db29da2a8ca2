"""
规格提取 - Spec Extraction

优先读取结构化规格，缺失时按名称推断。无法确定时返回 None，由规则降级为警告。
Structured specs first, name inference second; None when undeterminable.
"""

from __future__ import annotations

import math
import re
from typing import Iterable, List, Optional, Tuple

from ..schemas import Component
from .tables import (
    BASELINE_POWER,
    CHIPSET_MEMORY,
    CHIPSET_TO_SOCKET,
    CPU_POWER,
    CPU_SERIES,
    DEFAULT_CPU_POWER,
    DEFAULT_GPU_POWER,
    DEFAULT_MEMORY_GB,
    FORM_FACTOR_RANK,
    GPU_POWER,
    KNOWN_CHIPSETS,
    MEMORY_POWER_PER_8GB,
    SOCKETS,
    UNIVERSAL_COOLERS,
)


_KNOWN_SOCKETS = {"lga1700": "LGA1700", "lga1851": "LGA1851", "lga1200": "LGA1200", "am5": "AM5", "am4": "AM4"}


def norm(value: str | None) -> str:
    """小写并去掉标点空格：'LGA 1700' -> 'lga1700'"""
    return re.sub(r"[^a-z0-9]", "", (value or "").lower())


def loosely_matches(value: str, candidates: Iterable[str]) -> bool:
    """大小写、标点无关，且允许包含关系的匹配"""
    value_norm = norm(value)
    if not value_norm:
        return False
    for candidate in candidates:
        cand_norm = norm(candidate)
        if cand_norm and (cand_norm in value_norm or value_norm in cand_norm):
            return True
    return False


def canonical_socket(raw: str | None) -> Optional[str]:
    raw_norm = norm(raw)
    if not raw_norm:
        return None
    for key, canonical in _KNOWN_SOCKETS.items():
        if key in raw_norm:
            return canonical
    return raw_norm.upper()


def same_socket(first: str | None, second: str | None) -> bool:
    """同一插槽：规范名一致，或一方包含另一方（sTR5 / TR5）"""
    first_canonical = canonical_socket(first)
    second_canonical = canonical_socket(second)
    if first_canonical is None or second_canonical is None:
        return False
    return first_canonical == second_canonical or loosely_matches(first_canonical, [second_canonical])


def cpu_series(cpu: Component) -> Optional[Tuple[str, str, Tuple[str, ...]]]:
    """返回 (系列, 插槽, 支持芯片组)"""
    name = cpu.name.lower()
    for pattern, series, socket, chipsets in CPU_SERIES:
        if pattern.search(name):
            return series, socket, chipsets
    return None


def extract_chipset(motherboard: Component) -> Optional[str]:
    specs_chipset = getattr(motherboard.specs, "chipset", None)
    for source in (specs_chipset, motherboard.name):
        source_norm = norm(source)
        if not source_norm:
            continue
        for code in KNOWN_CHIPSETS:
            if norm(code) in source_norm:
                return code
    if specs_chipset:
        return norm(specs_chipset).upper()
    return None


def extract_socket(component: Component) -> Optional[str]:
    specs_socket = getattr(component.specs, "socket", None)
    if specs_socket:
        return canonical_socket(specs_socket)

    name_norm = norm(component.name)
    for key, canonical in _KNOWN_SOCKETS.items():
        if key in name_norm:
            return canonical

    if component.category == "cpu":
        series = cpu_series(component)
        return series[1] if series else None
    if component.category == "motherboard":
        chipset = extract_chipset(component)
        if chipset:
            return CHIPSET_TO_SOCKET.get(chipset)
    return None


def extract_memory_type_text(text: str | None) -> Optional[str]:
    match = re.search(r"ddr\s*([345])", (text or "").lower())
    return f"DDR{match.group(1)}" if match else None


def extract_memory_type(memory: Component) -> Optional[str]:
    specs_type = getattr(memory.specs, "memory_type", None)
    return extract_memory_type_text(specs_type or memory.name)


def extract_memory_speed(memory: Component) -> Optional[int]:
    if getattr(memory.specs, "speed_mhz", None):
        return memory.specs.speed_mhz
    for match in re.finditer(r"(?<!\d)(\d{4,5})(?!\d)", memory.name):
        speed = int(match.group(1))
        if 1600 <= speed <= 12000:
            return speed
    return None


def extract_capacity_gb(memory: Component) -> Optional[int]:
    if getattr(memory.specs, "capacity_gb", None):
        return memory.specs.capacity_gb
    name = memory.name.lower()
    kit = re.search(r"(\d+)\s*x\s*(\d+)\s*gb", name)
    if kit:
        return int(kit.group(1)) * int(kit.group(2))
    single = re.search(r"(\d+)\s*gb", name)
    return int(single.group(1)) if single else None


def supported_memory_types(motherboard: Component) -> Optional[List[str]]:
    declared = getattr(motherboard.specs, "memory_types", None)
    if declared:
        types = [extract_memory_type_text(t) for t in declared]
        return [t for t in types if t]
    chipset = extract_chipset(motherboard)
    if chipset in CHIPSET_MEMORY:
        return list(CHIPSET_MEMORY[chipset]["supports"])
    named = extract_memory_type_text(motherboard.name)
    if named:
        return [named]
    socket = extract_socket(motherboard)
    if socket in SOCKETS:
        return list(SOCKETS[socket]["memory_types"])
    return None


def max_memory_speed(motherboard: Component, memory_type: str) -> Optional[int]:
    declared = getattr(motherboard.specs, "max_memory_speed", None)
    if declared:
        return declared
    chipset = extract_chipset(motherboard)
    if chipset in CHIPSET_MEMORY:
        return CHIPSET_MEMORY[chipset]["max_speed"].get(memory_type)
    socket = extract_socket(motherboard)
    if socket in SOCKETS:
        return SOCKETS[socket]["max_memory_speed"].get(memory_type)
    return None


def max_memory_capacity(motherboard: Component) -> Optional[int]:
    declared = getattr(motherboard.specs, "max_memory_gb", None)
    if declared:
        return declared
    chipset = extract_chipset(motherboard)
    if chipset in CHIPSET_MEMORY:
        return CHIPSET_MEMORY[chipset]["max_capacity"]
    return None


def extract_psu_wattage(psu: Component) -> Optional[int]:
    if getattr(psu.specs, "wattage", None):
        return psu.specs.wattage
    match = re.search(r"(\d{3,4})\s*w\b", psu.name.lower())
    return int(match.group(1)) if match else None


def efficiency_tier(psu: Component) -> str:
    text = f"{getattr(psu.specs, 'efficiency', None) or ''} {psu.name}".lower()
    for tier in ("titanium", "platinum", "gold", "silver", "bronze"):
        if tier in text:
            return tier
    return ""


def _lookup_power(name: str, table: dict, default: int) -> int:
    lowered = name.lower()
    for model in sorted(table, key=len, reverse=True):
        if model in lowered:
            return table[model]
    return default


def cpu_power(cpu: Component) -> int:
    if getattr(cpu.specs, "power_draw", None) is not None:
        return cpu.specs.power_draw
    return _lookup_power(cpu.name, CPU_POWER, DEFAULT_CPU_POWER)


def gpu_power(gpu: Component) -> int:
    if getattr(gpu.specs, "power_draw", None) is not None:
        return gpu.specs.power_draw
    return _lookup_power(gpu.name, GPU_POWER, DEFAULT_GPU_POWER)


def memory_power(memory: Component) -> int:
    if getattr(memory.specs, "power_draw", None) is not None:
        return memory.specs.power_draw
    memory_type = extract_memory_type(memory) or "DDR4"
    capacity = extract_capacity_gb(memory) or DEFAULT_MEMORY_GB
    per_8gb = MEMORY_POWER_PER_8GB.get(memory_type, MEMORY_POWER_PER_8GB["DDR4"])
    return math.ceil(capacity / 8 * per_8gb)


def baseline_power() -> int:
    return BASELINE_POWER


def is_universal_cooler(cooler: Component) -> bool:
    lowered = f"{cooler.brand} {cooler.name}".lower()
    return any(line in lowered for line in UNIVERSAL_COOLERS)


def form_factor_key(raw: str | None) -> Optional[str]:
    value = norm(raw)
    if not value:
        return None
    if "itx" in value:
        return "mini-itx"
    if value in {"matx", "microatx", "uatx"} or "micro" in value or value.startswith("matx"):
        return "micro-atx"
    if value.startswith("eatx") or "extended" in value:
        return "e-atx"
    if "atx" in value:
        return "atx"
    return None


def case_size(case: Component) -> str:
    """按声明板型或名称估计机箱尺寸"""
    declared = form_factor_key(getattr(case.specs, "form_factor", None))
    if declared:
        return declared
    lowered = case.name.lower()
    if "mini" in lowered or "itx" in lowered:
        return "mini-itx"
    if "micro" in lowered or "matx" in lowered or "m-atx" in lowered:
        return "micro-atx"
    return "atx"


def form_factor_rank(raw: str | None) -> Optional[int]:
    key = form_factor_key(raw)
    return FORM_FACTOR_RANK.get(key) if key else None
