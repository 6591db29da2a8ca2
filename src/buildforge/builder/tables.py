"""
兼容性数据表 - Compatibility Data Tables

插槽、芯片组、功耗与散热器的手工维护表。新硬件发布后需要手动补充。
Hand-maintained socket, chipset, power and cooler tables; new hardware needs manual edits.
"""

from __future__ import annotations

import re
from typing import Dict, List, Tuple


# 插槽信息 - Socket information (fallback when the chipset is unknown)
SOCKETS: Dict[str, dict] = {
    "LGA1700": {
        "chipsets": ("H610", "B660", "H670", "Z690", "H770", "B760", "Z790"),
        "memory_types": ("DDR4", "DDR5"),
        "max_memory_speed": {"DDR4": 3200, "DDR5": 5600},
    },
    "LGA1851": {
        "chipsets": ("H810", "B860", "Z890"),
        "memory_types": ("DDR5",),
        "max_memory_speed": {"DDR5": 6400},
    },
    "AM5": {
        "chipsets": ("A620", "B650", "B650E", "X670", "X670E", "X870", "X870E"),
        "memory_types": ("DDR5",),
        "max_memory_speed": {"DDR5": 6000},
    },
    "AM4": {
        "chipsets": ("A320", "B350", "B450", "A520", "B550", "X370", "X470", "X570"),
        "memory_types": ("DDR4",),
        "max_memory_speed": {"DDR4": 3600},
    },
}

# 芯片组内存能力 - Memory capability per chipset
CHIPSET_MEMORY: Dict[str, dict] = {
    # Intel 600/700
    "Z790": {"supports": ("DDR4", "DDR5"), "max_speed": {"DDR4": 5600, "DDR5": 7800}, "max_capacity": 192},
    "B760": {"supports": ("DDR4", "DDR5"), "max_speed": {"DDR4": 5000, "DDR5": 6400}, "max_capacity": 192},
    "H770": {"supports": ("DDR4", "DDR5"), "max_speed": {"DDR4": 4800, "DDR5": 5600}, "max_capacity": 128},
    "Z690": {"supports": ("DDR4", "DDR5"), "max_speed": {"DDR4": 5000, "DDR5": 6400}, "max_capacity": 128},
    "H670": {"supports": ("DDR4", "DDR5"), "max_speed": {"DDR4": 4800, "DDR5": 5600}, "max_capacity": 128},
    "B660": {"supports": ("DDR4", "DDR5"), "max_speed": {"DDR4": 4800, "DDR5": 5600}, "max_capacity": 128},
    "H610": {"supports": ("DDR4", "DDR5"), "max_speed": {"DDR4": 4800, "DDR5": 4800}, "max_capacity": 64},
    # Intel 800
    "Z890": {"supports": ("DDR5",), "max_speed": {"DDR5": 8000}, "max_capacity": 192},
    "B860": {"supports": ("DDR5",), "max_speed": {"DDR5": 6400}, "max_capacity": 192},
    "H810": {"supports": ("DDR5",), "max_speed": {"DDR5": 5600}, "max_capacity": 96},
    # AM5
    "X870E": {"supports": ("DDR5",), "max_speed": {"DDR5": 8000}, "max_capacity": 192},
    "X870": {"supports": ("DDR5",), "max_speed": {"DDR5": 8000}, "max_capacity": 192},
    "X670E": {"supports": ("DDR5",), "max_speed": {"DDR5": 6400}, "max_capacity": 128},
    "X670": {"supports": ("DDR5",), "max_speed": {"DDR5": 5200}, "max_capacity": 128},
    "B650E": {"supports": ("DDR5",), "max_speed": {"DDR5": 5200}, "max_capacity": 128},
    "B650": {"supports": ("DDR5",), "max_speed": {"DDR5": 5200}, "max_capacity": 128},
    "A620": {"supports": ("DDR5",), "max_speed": {"DDR5": 5200}, "max_capacity": 64},
    # AM4
    "X570": {"supports": ("DDR4",), "max_speed": {"DDR4": 4733}, "max_capacity": 128},
    "B550": {"supports": ("DDR4",), "max_speed": {"DDR4": 4733}, "max_capacity": 128},
    "A520": {"supports": ("DDR4",), "max_speed": {"DDR4": 3200}, "max_capacity": 64},
    "X470": {"supports": ("DDR4",), "max_speed": {"DDR4": 3466}, "max_capacity": 64},
    "B450": {"supports": ("DDR4",), "max_speed": {"DDR4": 3466}, "max_capacity": 64},
    "X370": {"supports": ("DDR4",), "max_speed": {"DDR4": 3200}, "max_capacity": 64},
    "B350": {"supports": ("DDR4",), "max_speed": {"DDR4": 3200}, "max_capacity": 64},
    "A320": {"supports": ("DDR4",), "max_speed": {"DDR4": 2933}, "max_capacity": 32},
}

# 长的代号优先，避免 B650E 被识别成 B650
KNOWN_CHIPSETS: List[str] = sorted(CHIPSET_MEMORY, key=len, reverse=True)

CHIPSET_TO_SOCKET: Dict[str, str] = {
    chipset: socket for socket, info in SOCKETS.items() for chipset in info["chipsets"]
}

# CPU 系列 -> 插槽与开箱支持的芯片组
# (名称正则, 系列, 插槽, 芯片组)
CPU_SERIES: List[Tuple[re.Pattern, str, str, Tuple[str, ...]]] = [
    (
        re.compile(r"ryzen\s*[3579]\s*9\d{3}"),
        "Ryzen 9000",
        "AM5",
        ("A620", "B650", "B650E", "X670", "X670E", "X870", "X870E"),
    ),
    (
        re.compile(r"ryzen\s*[3579]\s*[78]\d{3}"),
        "Ryzen 7000",
        "AM5",
        ("A620", "B650", "B650E", "X670", "X670E", "X870", "X870E"),
    ),
    (
        re.compile(r"ryzen\s*[3579]\s*[5]\d{3}"),
        "Ryzen 5000",
        "AM4",
        ("A520", "B450", "B550", "X470", "X570"),
    ),
    (
        re.compile(r"ryzen\s*[3579]\s*[1-4]\d{3}"),
        "Ryzen 1000-4000",
        "AM4",
        ("A320", "B350", "B450", "A520", "B550", "X370", "X470", "X570"),
    ),
    (
        re.compile(r"core\s*ultra\s*[3579]\s*2\d{2}"),
        "Core Ultra 200",
        "LGA1851",
        ("H810", "B860", "Z890"),
    ),
    (
        re.compile(r"i[3579][\s-]*14\d{3}"),
        "Intel 14th Gen",
        "LGA1700",
        ("B760", "H770", "Z790"),
    ),
    (
        re.compile(r"i[3579][\s-]*1[23]\d{3}"),
        "Intel 12th/13th Gen",
        "LGA1700",
        ("H610", "B660", "H670", "Z690", "B760", "H770", "Z790"),
    ),
]

# 散热器扣具等效 - Cooler mounting equivalence (CPU socket -> accepted cooler mounts)
COOLER_MOUNTS: Dict[str, Tuple[str, ...]] = {
    "AM5": ("AM5", "AM4"),
    "AM4": ("AM4",),
    "LGA1851": ("LGA1851", "LGA1700"),
    "LGA1700": ("LGA1700",),
}

# 多平台通用的散热器产品线 - Known multi-socket cooler lines
UNIVERSAL_COOLERS: Tuple[str, ...] = (
    "thermalright peerless assassin",
    "noctua nh-d15",
    "be quiet! dark rock pro",
    "cooler master hyper 212",
    "arctic freezer",
    "scythe fuma",
)

# 功耗表 - Power draw by model (W)
CPU_POWER: Dict[str, int] = {
    "core i9-14900k": 125, "core i9-13900k": 125, "core i7-14700k": 125,
    "core i7-13700k": 125, "core i5-14600k": 125, "core i5-13600k": 125,
    "core i5-14400": 65, "core i5-13400": 65, "core i5-12400": 65, "core i3-13100": 60,
    "ryzen 9 9950x": 170, "ryzen 9 7950x": 170, "ryzen 9 7900x": 170,
    "ryzen 7 9700x": 65, "ryzen 7 7800x3d": 120, "ryzen 7 7700x": 105,
    "ryzen 5 9600x": 65, "ryzen 5 7600x": 105, "ryzen 5 7600": 65,
    "ryzen 9 5950x": 105, "ryzen 9 5900x": 105, "ryzen 7 5800x3d": 105,
    "ryzen 7 5700x": 65, "ryzen 5 5600x": 65, "ryzen 5 5600": 65,
}

GPU_POWER: Dict[str, int] = {
    "rtx 4090": 450, "rtx 4080 super": 320, "rtx 4080": 320,
    "rtx 4070 ti super": 285, "rtx 4070 ti": 285, "rtx 4070 super": 220,
    "rtx 4070": 200, "rtx 4060 ti": 165, "rtx 4060": 115,
    "rx 7900 xtx": 355, "rx 7900 xt": 315, "rx 7800 xt": 263,
    "rx 7700 xt": 245, "rx 7600": 165,
    "rtx 3080": 320, "rtx 3070": 220, "rtx 3060 ti": 200, "rtx 3060": 170,
    "arc b580": 190, "arc a750": 225,
}

DEFAULT_CPU_POWER = 65
DEFAULT_GPU_POWER = 200

# 主板 + 风扇 + 存储 + 外设的固定基础功耗
BASELINE_POWER = 120

# 每 8GB 内存功耗 - Memory draw per 8 GB module capacity
MEMORY_POWER_PER_8GB: Dict[str, int] = {"DDR4": 3, "DDR5": 4}
DEFAULT_MEMORY_GB = 16

# 高功耗显卡阈值，超过后提示电源接口
HIGH_POWER_GPU = 300

# 机箱未声明显卡限长时按尺寸估算 - GPU clearance defaults by case size
GPU_CLEARANCE_BY_CASE_SIZE: Dict[str, int] = {
    "mini-itx": 310,
    "micro-atx": 350,
    "atx": 400,
    "e-atx": 420,
}

FORM_FACTOR_RANK: Dict[str, int] = {
    "mini-itx": 0,
    "micro-atx": 1,
    "atx": 2,
    "e-atx": 3,
}
