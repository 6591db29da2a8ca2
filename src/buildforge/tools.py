from __future__ import annotations

from typing import List, Optional, Protocol, Tuple

from langchain_core.tools import tool
from pydantic import BaseModel, Field

from .builder.budget import allocate_budget as split_budget
from .builder.compatibility import estimate_power_draw, minimum_wattage, recommended_wattage, validate_build
from .builder.overlay import ConfidenceOverlay
from .graph import BuildSelector
from .schemas import BuildConfiguration, Category, Component, Region


class CatalogRepoProtocol(Protocol):
    def get_candidates(self, category: str, region: str) -> List[Component]: ...
    def find_by_id(self, component_id: str) -> Component | None: ...
    def all_components(self) -> List[Component]: ...


class AllocateBudgetInput(BaseModel):
    total_budget: int = Field(gt=0, description="Total budget in the region's currency")


class CandidatesInput(BaseModel):
    category: Category = Field(description="Part category such as cpu, gpu, motherboard")
    region: Region = "US"
    budget_max: Optional[int] = Field(default=None, description="Max acceptable regional price")


class ComponentIdsInput(BaseModel):
    component_ids: List[str] = Field(description="Catalog ids, at most one per category")


class LearnedInput(BaseModel):
    component_a: str
    component_b: str


class GenerateBuildInput(BaseModel):
    total_budget: int = Field(gt=0)
    region: Region = "US"


def build_from_ids(
    repo: CatalogRepoProtocol,
    component_ids: List[str],
) -> Tuple[BuildConfiguration, List[str]]:
    """按 id 组装配置，返回 (配置, 未知 id)；同一类别出现两次时报错"""
    build = BuildConfiguration()
    unknown: List[str] = []
    for component_id in component_ids:
        component = repo.find_by_id(component_id)
        if component is None:
            unknown.append(component_id)
            continue
        if build.get(component.category) is not None:
            raise ValueError(f"more than one {component.category} given: {component_id}")
        build = build.with_component(component.category, component)
    return build, unknown


class Toolset:
    def __init__(
        self,
        repo: CatalogRepoProtocol,
        *,
        overlay: Optional[ConfidenceOverlay] = None,
        selector: Optional[BuildSelector] = None,
    ):
        self.repo = repo
        self.overlay = overlay if overlay is not None else ConfidenceOverlay()
        self.selector = selector or BuildSelector(repo, self.overlay)

    def register(self):
        repo = self.repo
        overlay = self.overlay
        selector = self.selector

        @tool("allocate_budget", args_schema=AllocateBudgetInput)
        def allocate_budget(total_budget: int) -> dict:
            """Split a total budget into fixed-percentage envelopes per part category."""
            allocation = split_budget(total_budget)
            return {
                "envelopes": allocation.to_dict(),
                "remainder": allocation.remainder,
            }

        @tool("get_candidates", args_schema=CandidatesInput)
        def get_candidates(
            category: str,
            region: str = "US",
            budget_max: Optional[int] = None,
        ) -> List[dict]:
            """List catalog parts of one category priced in the region, cheapest first."""
            candidates = [
                c
                for c in repo.get_candidates(category, region)
                if budget_max is None or c.price_in(region) <= budget_max
            ]
            candidates.sort(key=lambda c: (c.price_in(region), c.id))
            return [c.model_dump(mode="json") for c in candidates]

        @tool("check_compatibility", args_schema=ComponentIdsInput)
        def check_compatibility(component_ids: List[str]) -> dict:
            """Run every compatibility rule over the parts given by id."""
            build, unknown = build_from_ids(repo, component_ids)
            result = validate_build(build, overlay)
            return {**result.model_dump(mode="json"), "unknown_ids": unknown}

        @tool("estimate_power", args_schema=ComponentIdsInput)
        def estimate_power(component_ids: List[str]) -> dict:
            """Estimate system power draw and the minimum and recommended PSU wattage."""
            build, unknown = build_from_ids(repo, component_ids)
            draw = estimate_power_draw(build)
            return {
                "power_draw": draw,
                "minimum_wattage": minimum_wattage(draw),
                "recommended_wattage": recommended_wattage(draw),
                "unknown_ids": unknown,
            }

        @tool("check_learned_compatibility", args_schema=LearnedInput)
        def check_learned_compatibility(component_a: str, component_b: str) -> dict:
            """Look up what community builds say about two parts being used together."""
            return overlay.check_learned(component_a, component_b).model_dump(mode="json")

        @tool("generate_build", args_schema=GenerateBuildInput)
        def generate_build(total_budget: int, region: str = "US") -> dict:
            """Select a complete compatible build for a budget and region."""
            return selector.select(total_budget, region).model_dump(mode="json")

        return {
            "allocate_budget": allocate_budget,
            "get_candidates": get_candidates,
            "check_compatibility": check_compatibility,
            "estimate_power": estimate_power,
            "check_learned_compatibility": check_learned_compatibility,
            "generate_build": generate_build,
        }
