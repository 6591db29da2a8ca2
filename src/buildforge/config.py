from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CATALOG_PATH = ROOT / "data" / "catalog.json"
DEFAULT_COMMUNITY_BUILDS_PATH = ROOT / "data" / "community_builds.json"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_path(name: str, default: Optional[Path]) -> Optional[Path]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    return Path(raw)


@dataclass
class EngineSettings:
    """引擎配置，默认值即生产取值"""

    budget_widen_factor: float = 1.5
    allow_limited_stock: bool = False
    fetch_timeout_seconds: float = 5.0
    fetch_workers: int = 4
    selection_seed: Optional[int] = None
    catalog_path: Path = DEFAULT_CATALOG_PATH
    community_builds_path: Optional[Path] = DEFAULT_COMMUNITY_BUILDS_PATH
    patterns_db_path: Optional[Path] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "EngineSettings":
        seed_raw = (os.getenv("BUILDFORGE_SELECTION_SEED") or "").strip()
        seed = _env_int("BUILDFORGE_SELECTION_SEED", 0) if seed_raw else None
        return cls(
            budget_widen_factor=max(1.0, _env_float("BUILDFORGE_BUDGET_WIDEN_FACTOR", 1.5)),
            allow_limited_stock=_env_bool("BUILDFORGE_ALLOW_LIMITED_STOCK", False),
            fetch_timeout_seconds=max(0.1, _env_float("BUILDFORGE_FETCH_TIMEOUT_SECONDS", 5.0)),
            fetch_workers=max(1, _env_int("BUILDFORGE_FETCH_WORKERS", 4)),
            selection_seed=seed,
            catalog_path=_env_path("BUILDFORGE_CATALOG_PATH", DEFAULT_CATALOG_PATH),
            community_builds_path=_env_path(
                "BUILDFORGE_COMMUNITY_BUILDS_PATH", DEFAULT_COMMUNITY_BUILDS_PATH
            ),
            patterns_db_path=_env_path("BUILDFORGE_PATTERNS_DB", None),
            log_level=os.getenv("BUILDFORGE_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
