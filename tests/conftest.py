from pathlib import Path

import pytest

from buildforge.catalog import JsonCatalog, StaticCatalog
from buildforge.schemas import SUPPORTED_REGIONS, Component


ROOT = Path(__file__).resolve().parents[1]
CATALOG_PATH = ROOT / "data" / "catalog.json"
COMMUNITY_BUILDS_PATH = ROOT / "data" / "community_builds.json"


def _make_component(
    category: str,
    name: str,
    price: int = 100,
    brand: str = "Generic",
    specs: dict | None = None,
    **extra,
) -> Component:
    component_id = extra.pop("id", f"{category}-{name.lower().replace(' ', '-')}")
    return Component.model_validate(
        {
            "id": component_id,
            "name": name,
            "brand": brand,
            "category": category,
            "price": {region: price for region in SUPPORTED_REGIONS},
            "specs": specs or {},
            **extra,
        }
    )


@pytest.fixture
def make_component():
    """配件工厂：所有地区同价"""
    return _make_component


@pytest.fixture
def json_catalog():
    return JsonCatalog(CATALOG_PATH)


@pytest.fixture
def small_catalog():
    """一套 1200 预算内能配齐的 AM5 平台"""
    return StaticCatalog(
        [
            _make_component("cpu", "AMD Ryzen 5 7600", 199, "AMD", {"socket": "AM5", "power_draw": 65}),
            _make_component("cpu", "AMD Ryzen 5 5600", 129, "AMD", {"socket": "AM4", "power_draw": 65}),
            _make_component(
                "motherboard",
                "MSI PRO B650M-A",
                115,
                "MSI",
                {"socket": "AM5", "chipset": "B650", "memory_types": ["DDR5"], "form_factor": "Micro-ATX"},
            ),
            _make_component(
                "memory",
                "G.SKILL Flare X5 32GB DDR5-5200",
                89,
                "G.SKILL",
                {"memory_type": "DDR5", "speed_mhz": 5200, "capacity_gb": 32},
            ),
            _make_component("gpu", "MSI GeForce RTX 4060 Ti", 399, "MSI", {"power_draw": 165, "length_mm": 199}),
            _make_component("storage", "Samsung 990 EVO 1TB", 89, "Samsung"),
            _make_component(
                "cooler",
                "DeepCool AK400",
                34,
                "DeepCool",
                {"sockets": ["AM5", "AM4", "LGA1700"], "height_mm": 155},
            ),
            _make_component(
                "case",
                "Montech AIR 100",
                59,
                "Montech",
                {"max_gpu_length_mm": 330, "max_cooler_height_mm": 161, "form_factor": "Micro-ATX"},
            ),
            _make_component("psu", "MSI MAG A650BN 650W Bronze", 64, "MSI", {"wattage": 650}),
        ]
    )
