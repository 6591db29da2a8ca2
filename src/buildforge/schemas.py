from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Category = Literal[
    "cpu",
    "gpu",
    "motherboard",
    "memory",
    "storage",
    "cooler",
    "psu",
    "case",
]

CATEGORIES: tuple = ("cpu", "gpu", "motherboard", "memory", "storage", "cooler", "psu", "case")

Region = Literal["US", "CA", "UK", "DE", "AU"]

SUPPORTED_REGIONS: tuple = ("US", "CA", "UK", "DE", "AU")

Availability = Literal["in-stock", "limited", "out-of-stock"]
Trend = Literal["up", "down", "stable"]

# discovered: 新发现的最新配件; catalog: 静态目录; community: 社区装机单
CatalogSource = Literal["discovered", "catalog", "community"]

RuleType = Literal["socket", "memory", "power", "physical", "chipset", "bios"]
Severity = Literal["critical", "warning", "info"]


# === 各类别规格（按 kind 区分的联合类型）===
# 所有字段都可缺省：缺省表示"未知"，由规则引擎降级为警告


class CpuSpecs(BaseModel):
    kind: Literal["cpu"] = "cpu"
    socket: Optional[str] = None
    power_draw: Optional[int] = Field(default=None, ge=0, description="功耗(W)")
    cores: Optional[int] = Field(default=None, ge=1)


class GpuSpecs(BaseModel):
    kind: Literal["gpu"] = "gpu"
    power_draw: Optional[int] = Field(default=None, ge=0)
    length_mm: Optional[int] = Field(default=None, ge=0)
    vram_gb: Optional[int] = Field(default=None, ge=0)


class MotherboardSpecs(BaseModel):
    kind: Literal["motherboard"] = "motherboard"
    socket: Optional[str] = None
    chipset: Optional[str] = None
    memory_types: List[str] = Field(default_factory=list, description="支持的内存代际，空表示未知")
    max_memory_speed: Optional[int] = Field(default=None, ge=0)
    max_memory_gb: Optional[int] = Field(default=None, ge=0)
    form_factor: Optional[str] = None


class MemorySpecs(BaseModel):
    kind: Literal["memory"] = "memory"
    memory_type: Optional[str] = None
    speed_mhz: Optional[int] = Field(default=None, ge=0)
    capacity_gb: Optional[int] = Field(default=None, ge=0)
    power_draw: Optional[int] = Field(default=None, ge=0)


class StorageSpecs(BaseModel):
    kind: Literal["storage"] = "storage"
    interface: Optional[str] = None
    capacity_gb: Optional[int] = Field(default=None, ge=0)
    power_draw: Optional[int] = Field(default=None, ge=0)


class CoolerSpecs(BaseModel):
    kind: Literal["cooler"] = "cooler"
    sockets: List[str] = Field(default_factory=list, description="声明支持的插槽，空表示未声明")
    height_mm: Optional[int] = Field(default=None, ge=0)
    cooler_type: Optional[Literal["air", "liquid"]] = None


class PsuSpecs(BaseModel):
    kind: Literal["psu"] = "psu"
    wattage: Optional[int] = Field(default=None, ge=0)
    efficiency: Optional[str] = None


class CaseSpecs(BaseModel):
    kind: Literal["case"] = "case"
    max_gpu_length_mm: Optional[int] = Field(default=None, ge=0)
    max_cooler_height_mm: Optional[int] = Field(default=None, ge=0)
    form_factor: Optional[str] = Field(default=None, description="可容纳的最大主板板型")


ComponentSpecs = Annotated[
    Union[
        CpuSpecs,
        GpuSpecs,
        MotherboardSpecs,
        MemorySpecs,
        StorageSpecs,
        CoolerSpecs,
        PsuSpecs,
        CaseSpecs,
    ],
    Field(discriminator="kind"),
]


class Component(BaseModel):
    """可购买的配件（引擎视角下不可变）"""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    brand: str
    category: Category
    price: Dict[Region, int] = Field(description="各地区价格")
    specs: ComponentSpecs
    availability: Availability = "in-stock"
    trend: Trend = "stable"
    source: CatalogSource = "catalog"
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _default_specs_kind(cls, data):
        # 规格缺省时按类别补齐 kind，便于目录数据省略
        if isinstance(data, dict) and data.get("category"):
            specs = data.get("specs")
            if specs is None:
                data = {**data, "specs": {"kind": data["category"]}}
            elif isinstance(specs, dict) and "kind" not in specs:
                data = {**data, "specs": {**specs, "kind": data["category"]}}
        return data

    @field_validator("price")
    @classmethod
    def _price_covers_regions(cls, value: Dict[str, int]) -> Dict[str, int]:
        missing = [r for r in SUPPORTED_REGIONS if r not in value]
        if missing:
            raise ValueError(f"price map missing regions: {', '.join(missing)}")
        for region, amount in value.items():
            if amount <= 0:
                raise ValueError(f"price for {region} must be positive")
        return value

    @model_validator(mode="after")
    def _specs_match_category(self) -> "Component":
        if self.specs.kind != self.category:
            raise ValueError(
                f"specs kind '{self.specs.kind}' does not match category '{self.category}'"
            )
        return self

    def price_in(self, region: str) -> int:
        return self.price[region]


class BuildConfiguration(BaseModel):
    """装机配置：每个类别一个配件，None 表示未选"""

    cpu: Optional[Component] = None
    gpu: Optional[Component] = None
    motherboard: Optional[Component] = None
    memory: Optional[Component] = None
    storage: Optional[Component] = None
    cooler: Optional[Component] = None
    psu: Optional[Component] = None
    case: Optional[Component] = None

    @model_validator(mode="after")
    def _slots_match_category(self) -> "BuildConfiguration":
        for category in CATEGORIES:
            component = getattr(self, category)
            if component is not None and component.category != category:
                raise ValueError(f"{component.name} is a {component.category}, not a {category}")
        return self

    def get(self, category: str) -> Optional[Component]:
        return getattr(self, category)

    def with_component(self, category: str, component: Optional[Component]) -> "BuildConfiguration":
        if category not in CATEGORIES:
            raise ValueError(f"unknown category: {category}")
        if component is not None and component.category != category:
            raise ValueError(f"{component.name} is a {component.category}, not a {category}")
        return self.model_copy(update={category: component})

    def components(self) -> Dict[str, Component]:
        return {c: getattr(self, c) for c in CATEGORIES if getattr(self, c) is not None}

    def missing(self) -> List[str]:
        return [c for c in CATEGORIES if getattr(self, c) is None]

    def total_price(self, region: str) -> int:
        return sum(part.price_in(region) for part in self.components().values())


class CompatibilityRule(BaseModel):
    type: RuleType
    severity: Severity
    message: str
    details: Optional[str] = None


class CompatibilityResult(BaseModel):
    compatible: bool
    issues: List[CompatibilityRule] = Field(default_factory=list)
    warnings: List[CompatibilityRule] = Field(default_factory=list)
    notes: List[CompatibilityRule] = Field(default_factory=list)
    power_draw: int = 0
    estimated_wattage: int = 0


class LearnedCompatibilityResult(BaseModel):
    compatible: bool
    confidence: float = Field(ge=0.0, le=1.0)
    source: str
    explanation: str = ""
    examples: List[str] = Field(default_factory=list)


class BuildResult(BaseModel):
    region: Region
    total_budget: int
    allocation: Dict[str, int]
    build: BuildConfiguration
    compatibility: CompatibilityResult
    unselected: Dict[str, str] = Field(default_factory=dict)
    total_price: int = 0


# === HTTP 请求体 ===


class BuildRequest(BaseModel):
    budget: int = Field(gt=0)
    region: Region = "US"


class CompatibilityRequest(BaseModel):
    region: Region = "US"
    component_ids: List[str] = Field(default_factory=list)
    build: Optional[BuildConfiguration] = None


class LearnedRequest(BaseModel):
    component_a: str
    component_b: str


class ObservationRequest(BaseModel):
    component_a: str
    component_b: str
    compatible: bool = True
    verified: bool = False
    build_id: Optional[str] = None
