"""选型流程的共享状态"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Optional, TypedDict

from ..builder.budget import BudgetAllocation
from ..builder.overlay import ConfidenceOverlay
from ..catalog import CatalogAdapter
from ..config import EngineSettings
from ..schemas import BuildConfiguration, CompatibilityResult


@dataclass
class SelectionContext:
    """一次选型所需的协作者；节点只读"""

    catalog: CatalogAdapter
    settings: EngineSettings
    overlay: Optional[ConfidenceOverlay] = None
    rng: Optional[random.Random] = None


class SelectionState(TypedDict, total=False):
    total_budget: int
    region: str
    context: SelectionContext
    allocation: BudgetAllocation
    build: BuildConfiguration
    unselected: Dict[str, str]
    compatibility: CompatibilityResult
