"""
经验兼容性层 - Confidence Overlay

从社区装机单中积累"哪些配件一起出现过"的经验，在确定性规则无法判定时补充置信度。
Learned compatibility signals mined from community builds; consulted only when the
deterministic rules are inconclusive. It never raises a critical issue by itself.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import threading
from dataclasses import dataclass, field
from itertools import combinations
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from ..errors import PatternStoreError
from ..schemas import BuildConfiguration, LearnedCompatibilityResult

logger = logging.getLogger(__name__)


INITIAL_CONFIDENCE = 0.6
VERIFIED_INITIAL_CONFIDENCE = 0.8
CONFIDENCE_STEP = 0.1
PARTIAL_MATCH_DISCOUNT = 0.7
NO_MATCH_CONFIDENCE = 0.1
SIMILARITY_THRESHOLD = 0.6
REPORTABLE_CONFIDENCE = 0.3
TRUSTED_CONFIDENCE = 0.5


@dataclass
class CompatibilityPattern:
    component_a: str
    component_b: str
    compatible: bool
    confidence: float
    source: str = "community_build"
    examples: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "component_a": self.component_a,
            "component_b": self.component_b,
            "compatible": self.compatible,
            "confidence": self.confidence,
            "source": self.source,
            "examples": list(self.examples),
        }


class PatternStore(Protocol):
    def get(self, key: str) -> Optional[CompatibilityPattern]: ...
    def values(self) -> List[CompatibilityPattern]: ...
    def update(
        self,
        key: str,
        fn: Callable[[Optional[CompatibilityPattern]], CompatibilityPattern],
    ) -> CompatibilityPattern: ...


class _KeyLocks:
    """按 key 分配写锁；读不加锁"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


class InMemoryPatternStore:
    def __init__(self):
        self._patterns: Dict[str, CompatibilityPattern] = {}
        self._locks = _KeyLocks()

    def get(self, key: str) -> Optional[CompatibilityPattern]:
        return self._patterns.get(key)

    def values(self) -> List[CompatibilityPattern]:
        return list(self._patterns.values())

    def update(self, key, fn):
        with self._locks.get(key):
            pattern = fn(self._patterns.get(key))
            self._patterns[key] = pattern
            return pattern

    def __len__(self) -> int:
        return len(self._patterns)


class SQLitePatternStore:
    """持久化的经验库，每次操作独立连接"""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._locks = _KeyLocks()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS compat_patterns (
                        pair_key TEXT PRIMARY KEY,
                        component_a TEXT NOT NULL,
                        component_b TEXT NOT NULL,
                        compatible INTEGER NOT NULL,
                        confidence REAL NOT NULL,
                        source TEXT NOT NULL,
                        examples_json TEXT NOT NULL,
                        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                    )
                    """
                )
                conn.commit()
        except sqlite3.Error as err:
            raise PatternStoreError(f"cannot open pattern store {db_path}: {err}") from err

    @staticmethod
    def _row_to_pattern(row) -> CompatibilityPattern:
        return CompatibilityPattern(
            component_a=row[0],
            component_b=row[1],
            compatible=bool(row[2]),
            confidence=float(row[3]),
            source=row[4],
            examples=json.loads(row[5]),
        )

    def get(self, key: str) -> Optional[CompatibilityPattern]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                row = conn.execute(
                    """
                    SELECT component_a, component_b, compatible, confidence, source, examples_json
                    FROM compat_patterns
                    WHERE pair_key = ?
                    """,
                    (key,),
                ).fetchone()
        except sqlite3.Error as err:
            raise PatternStoreError(str(err)) from err
        return self._row_to_pattern(row) if row else None

    def values(self) -> List[CompatibilityPattern]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                rows = conn.execute(
                    """
                    SELECT component_a, component_b, compatible, confidence, source, examples_json
                    FROM compat_patterns
                    ORDER BY pair_key
                    """
                ).fetchall()
        except sqlite3.Error as err:
            raise PatternStoreError(str(err)) from err
        return [self._row_to_pattern(r) for r in rows]

    def update(self, key, fn):
        with self._locks.get(key):
            pattern = fn(self.get(key))
            try:
                with sqlite3.connect(self.db_path) as conn:
                    conn.execute(
                        """
                        INSERT INTO compat_patterns (
                            pair_key, component_a, component_b, compatible,
                            confidence, source, examples_json, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                        ON CONFLICT(pair_key) DO UPDATE SET
                            compatible = excluded.compatible,
                            confidence = excluded.confidence,
                            source = excluded.source,
                            examples_json = excluded.examples_json,
                            updated_at = CURRENT_TIMESTAMP
                        """,
                        (
                            key,
                            pattern.component_a,
                            pattern.component_b,
                            int(pattern.compatible),
                            pattern.confidence,
                            pattern.source,
                            json.dumps(pattern.examples, ensure_ascii=False),
                        ),
                    )
                    conn.commit()
            except sqlite3.Error as err:
                raise PatternStoreError(str(err)) from err
            return pattern


def _normalize_name(name: str) -> str:
    return " ".join(name.lower().split())


def pair_key(name_a: str, name_b: str) -> str:
    """与顺序无关的配对 key"""
    first, second = sorted([_normalize_name(name_a), _normalize_name(name_b)])
    return f"{first}|{second}"


def token_overlap(name_a: str, name_b: str) -> float:
    """
    词重叠率 - Token overlap ratio

    长度 > 2 的词在另一方中存在包含关系即计为命中；命中数 / 较短一方的词数。
    """
    words_a = re.split(r"\s+", name_a.lower().strip())
    words_b = re.split(r"\s+", name_b.lower().strip())
    if not words_a or not words_b or not words_a[0] or not words_b[0]:
        return 0.0
    matches = 0
    for word_a in words_a:
        if len(word_a) > 2 and any(word_a in word_b or word_b in word_a for word_b in words_b if len(word_b) > 2):
            matches += 1
    return min(1.0, matches / min(len(words_a), len(words_b)))


def is_similar(name_a: str, name_b: str) -> bool:
    return token_overlap(name_a, name_b) >= SIMILARITY_THRESHOLD


class ConfidenceOverlay:
    """
    经验兼容性判断 - Learned compatibility judgments

    参数 Parameters:
        store: 经验存储，缺省为进程内存储；测试可各自实例化互不干扰
               Pattern store, in-memory when omitted
    """

    def __init__(self, store: Optional[PatternStore] = None):
        self.store: PatternStore = store if store is not None else InMemoryPatternStore()

    def record_observation(
        self,
        component_a: str,
        component_b: str,
        compatible: bool = True,
        verified: bool = False,
        build_id: Optional[str] = None,
        source: str = "community_build",
    ) -> CompatibilityPattern:
        key = pair_key(component_a, component_b)

        def apply(existing: Optional[CompatibilityPattern]) -> CompatibilityPattern:
            if existing is None:
                return CompatibilityPattern(
                    component_a=component_a,
                    component_b=component_b,
                    compatible=compatible,
                    confidence=VERIFIED_INITIAL_CONFIDENCE if verified else INITIAL_CONFIDENCE,
                    source=source,
                    examples=[build_id] if build_id else [],
                )
            examples = list(existing.examples)
            if build_id:
                examples.append(build_id)
            if existing.compatible == compatible:
                confidence = min(1.0, round(existing.confidence + CONFIDENCE_STEP, 4))
                return CompatibilityPattern(
                    component_a=existing.component_a,
                    component_b=existing.component_b,
                    compatible=existing.compatible,
                    confidence=confidence,
                    source=existing.source,
                    examples=examples,
                )
            # 反例：降低置信度，降到 0 时翻转结论
            confidence = round(existing.confidence - CONFIDENCE_STEP, 4)
            flipped = confidence <= 0
            return CompatibilityPattern(
                component_a=existing.component_a,
                component_b=existing.component_b,
                compatible=compatible if flipped else existing.compatible,
                confidence=CONFIDENCE_STEP if flipped else confidence,
                source=source if flipped else existing.source,
                examples=examples,
            )

        pattern = self.store.update(key, apply)
        logger.debug(
            "observation %s + %s compatible=%s -> confidence %.2f",
            component_a,
            component_b,
            compatible,
            pattern.confidence,
        )
        return pattern

    def learn_from_build(
        self,
        component_names: Iterable[str],
        build_id: Optional[str] = None,
        verified: bool = False,
    ) -> int:
        """把一份装机单里的每一对配件记为兼容，返回新增的配对数"""
        names = list(dict.fromkeys(n for n in component_names if n and n.strip()))
        created = 0
        for name_a, name_b in combinations(names, 2):
            is_new = self.store.get(pair_key(name_a, name_b)) is None
            self.record_observation(name_a, name_b, True, verified=verified, build_id=build_id)
            if is_new:
                created += 1
        return created

    def check_learned(self, component_a: str, component_b: str) -> LearnedCompatibilityResult:
        """
        查询经验判断 - Query learned judgment

        精确命中 -> 原判断；相似命中 -> 置信度 × 0.7；无命中 -> 兼容、置信度 0.1。
        存储不可用时按无命中处理（fail open）。
        """
        try:
            return self._check_learned(component_a, component_b)
        except (PatternStoreError, sqlite3.Error) as err:
            logger.warning("pattern store unavailable, failing open: %s", err)
            return self._no_match(component_a, component_b)

    def _check_learned(self, component_a: str, component_b: str) -> LearnedCompatibilityResult:
        pattern = self.store.get(pair_key(component_a, component_b))
        if pattern is not None:
            return LearnedCompatibilityResult(
                compatible=pattern.compatible,
                confidence=pattern.confidence,
                source=f"Learned from {max(1, len(pattern.examples))} community builds",
                explanation=(
                    f"{component_a} and {component_b} were observed together in real builds"
                    if pattern.compatible
                    else f"{component_a} and {component_b} were reported incompatible"
                ),
                examples=list(pattern.examples),
            )

        partial = self._find_partial_match(component_a, component_b)
        if partial is not None:
            return LearnedCompatibilityResult(
                compatible=partial.compatible,
                confidence=round(partial.confidence * PARTIAL_MATCH_DISCOUNT, 4),
                source="Inferred from similar components",
                explanation=(
                    f"similar pair {partial.component_a} + {partial.component_b} "
                    f"was judged {'compatible' if partial.compatible else 'incompatible'}"
                ),
                examples=list(partial.examples),
            )
        return self._no_match(component_a, component_b)

    @staticmethod
    def _no_match(component_a: str, component_b: str) -> LearnedCompatibilityResult:
        return LearnedCompatibilityResult(
            compatible=True,
            confidence=NO_MATCH_CONFIDENCE,
            source="No learned evidence",
            explanation=f"no observations for {component_a} + {component_b}; defaulting to compatible",
        )

    def _find_partial_match(self, component_a: str, component_b: str) -> Optional[CompatibilityPattern]:
        best: Optional[CompatibilityPattern] = None
        for pattern in self.store.values():
            straight = is_similar(component_a, pattern.component_a) and is_similar(component_b, pattern.component_b)
            crossed = is_similar(component_a, pattern.component_b) and is_similar(component_b, pattern.component_a)
            if (straight or crossed) and (best is None or pattern.confidence > best.confidence):
                best = pattern
        return best

    def compatible_with(self, component_name: str) -> List[str]:
        """列出与该配件有可信兼容记录的配件"""
        needle = component_name.lower()
        partners: List[str] = []
        try:
            patterns = self.store.values()
        except (PatternStoreError, sqlite3.Error) as err:
            logger.warning("pattern store unavailable, failing open: %s", err)
            return partners
        for pattern in patterns:
            if not pattern.compatible or pattern.confidence <= TRUSTED_CONFIDENCE:
                continue
            if needle in pattern.component_a.lower():
                partners.append(pattern.component_b)
            elif needle in pattern.component_b.lower():
                partners.append(pattern.component_a)
        return partners

    def check_build(self, build: BuildConfiguration) -> List[LearnedCompatibilityResult]:
        """对整机每对配件查询经验，只保留置信度 > 0.3 的结果"""
        parts = list(build.components().values())
        results: List[LearnedCompatibilityResult] = []
        for part_a, part_b in combinations(parts, 2):
            result = self.check_learned(part_a.name, part_b.name)
            if result.confidence > REPORTABLE_CONFIDENCE:
                results.append(result)
        return results

    def load_builds(self, path: Path) -> int:
        """加载预先提取好的社区装机单 JSON：[{"id", "components": [...], "verified"}]"""
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        learned = 0
        for item in raw:
            learned += self.learn_from_build(
                item.get("components", []),
                build_id=item.get("id"),
                verified=bool(item.get("verified", False)),
            )
        logger.info("learned %d compatibility patterns from %s", learned, path)
        return learned
