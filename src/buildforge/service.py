from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .builder.budget import BudgetAllocation, allocate_budget
from .builder.compatibility import validate_build
from .builder.overlay import CompatibilityPattern, ConfidenceOverlay, InMemoryPatternStore, SQLitePatternStore
from .catalog import JsonCatalog
from .config import EngineSettings
from .errors import UnknownComponentError
from .graph import BuildSelector
from .schemas import (
    BuildConfiguration,
    BuildResult,
    CompatibilityResult,
    Component,
    LearnedCompatibilityResult,
)
from .tools import CatalogRepoProtocol, build_from_ids

logger = logging.getLogger(__name__)


class BuildService:
    """选型、兼容性检查与经验记录的统一入口；自身无状态，经验层由构造时注入"""

    def __init__(
        self,
        repo: CatalogRepoProtocol,
        overlay: Optional[ConfidenceOverlay] = None,
        settings: Optional[EngineSettings] = None,
        selector: Optional[BuildSelector] = None,
    ):
        self.repo = repo
        self.overlay = overlay if overlay is not None else ConfidenceOverlay()
        self.settings = settings or EngineSettings()
        self.selector = selector or BuildSelector(repo, self.overlay, self.settings)

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "BuildService":
        repo = JsonCatalog(settings.catalog_path)
        if settings.patterns_db_path:
            store = SQLitePatternStore(settings.patterns_db_path)
        else:
            store = InMemoryPatternStore()
        overlay = ConfidenceOverlay(store)
        builds_path = settings.community_builds_path
        if builds_path and builds_path.exists():
            overlay.load_builds(builds_path)
        elif builds_path:
            logger.info("community builds file %s not found, overlay starts empty", builds_path)
        return cls(repo, overlay, settings)

    def generate(self, budget: int, region: str = "US") -> BuildResult:
        return self.selector.select(budget, region)

    def allocation(self, budget: int) -> BudgetAllocation:
        return allocate_budget(budget)

    def check(self, build: BuildConfiguration) -> CompatibilityResult:
        return validate_build(build, self.overlay)

    def check_ids(self, component_ids: List[str]) -> Tuple[BuildConfiguration, CompatibilityResult]:
        build, unknown = build_from_ids(self.repo, component_ids)
        if unknown:
            raise UnknownComponentError(unknown)
        return build, self.check(build)

    def learned(self, component_a: str, component_b: str) -> LearnedCompatibilityResult:
        return self.overlay.check_learned(component_a, component_b)

    def record(
        self,
        component_a: str,
        component_b: str,
        compatible: bool = True,
        verified: bool = False,
        build_id: Optional[str] = None,
    ) -> CompatibilityPattern:
        return self.overlay.record_observation(
            component_a,
            component_b,
            compatible,
            verified=verified,
            build_id=build_id,
        )

    def components(self, category: Optional[str] = None, region: str = "US") -> List[Component]:
        if category:
            return self.repo.get_candidates(category, region)
        return [c for c in self.repo.all_components() if region in c.price]
