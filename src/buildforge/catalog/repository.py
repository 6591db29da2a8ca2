"""配件目录适配器"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Protocol, Sequence

from ..schemas import Component

logger = logging.getLogger(__name__)


class CatalogAdapter(Protocol):
    """目录查询契约：按类别和地区返回带价格、库存的候选配件"""

    def get_candidates(self, category: str, region: str) -> List[Component]: ...


class StaticCatalog:
    """内存目录"""

    def __init__(self, components: Iterable[Component] = ()):
        self._components: List[Component] = list(components)

    def all_components(self) -> List[Component]:
        return list(self._components)

    def by_category(self, category: str) -> List[Component]:
        return [c for c in self._components if c.category == category]

    def get_candidates(self, category: str, region: str) -> List[Component]:
        return [c for c in self._components if c.category == category and region in c.price]

    def find_by_id(self, component_id: str) -> Component | None:
        for component in self._components:
            if component.id == component_id:
                return component
        return None


class JsonCatalog(StaticCatalog):
    """JSON 文件目录：[{id, name, brand, category, price, specs, ...}]"""

    def __init__(self, data_path: Path):
        self.data_path = data_path
        super().__init__()
        self.reload()

    def reload(self) -> None:
        """重新加载数据"""
        if not self.data_path.exists():
            logger.warning("catalog file %s not found, catalog is empty", self.data_path)
            self._components = []
            return
        with self.data_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        self._components = [Component.model_validate(item) for item in raw]
        logger.info("loaded %d components from %s", len(self._components), self.data_path)


class MergedCatalog:
    """
    多来源合并目录

    按给定顺序（新发现 -> 已验证目录 -> 社区）合并，名称相同（忽略大小写）时先到先得。
    某个来源失败时记录日志并跳过，不影响其他来源。
    """

    def __init__(self, sources: Sequence[CatalogAdapter]):
        self.sources = list(sources)

    def get_candidates(self, category: str, region: str) -> List[Component]:
        merged: List[Component] = []
        seen: set[str] = set()
        for source in self.sources:
            try:
                candidates = source.get_candidates(category, region)
            except Exception as err:
                logger.warning(
                    "catalog source %s failed for %s/%s: %s",
                    type(source).__name__,
                    category,
                    region,
                    err,
                )
                continue
            for component in candidates:
                key = component.name.strip().lower()
                if key in seen:
                    continue
                seen.add(key)
                merged.append(component)
        return merged

    def find_by_id(self, component_id: str) -> Component | None:
        for source in self.sources:
            finder = getattr(source, "find_by_id", None)
            if finder is None:
                continue
            found = finder(component_id)
            if found is not None:
                return found
        return None

    def all_components(self) -> List[Component]:
        merged: List[Component] = []
        seen: set[str] = set()
        for source in self.sources:
            lister = getattr(source, "all_components", None)
            if lister is None:
                continue
            for component in lister():
                key = component.name.strip().lower()
                if key not in seen:
                    seen.add(key)
                    merged.append(component)
        return merged
