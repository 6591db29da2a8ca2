"""异常定义 - Engine Exceptions"""

from __future__ import annotations

from typing import Literal


ShortageReason = Literal["unaffordable", "incompatible", "timeout"]


class BuildForgeError(Exception):
    """所有引擎异常的基类"""


class NoCandidateAvailable(BuildForgeError):
    """
    某类别没有可选配件 - No candidate available for a category

    对 cpu / motherboard / memory 是致命错误；其余类别由选择器降级为"未选"。
    Fatal for the cpu/motherboard/memory chain; other categories degrade to unselected.
    """

    def __init__(
        self,
        category: str,
        reason: ShortageReason = "unaffordable",
        budget_envelope: int = 0,
        candidates_considered: int = 0,
        detail: str = "",
    ):
        self.category = category
        self.reason = reason
        self.budget_envelope = budget_envelope
        self.candidates_considered = candidates_considered
        self.detail = detail
        message = (
            f"no candidate for {category} ({reason}): "
            f"envelope={budget_envelope}, considered={candidates_considered}"
        )
        if detail:
            message += f" ({detail})"
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "reason": self.reason,
            "budget_envelope": self.budget_envelope,
            "candidates_considered": self.candidates_considered,
            "detail": self.detail,
            "message": str(self),
        }


class IncompatibleDependency(NoCandidateAvailable):
    """所有候选都与已选上游配件冲突（插槽/内存代际等）"""

    def __init__(
        self,
        category: str,
        budget_envelope: int = 0,
        candidates_considered: int = 0,
        detail: str = "",
    ):
        super().__init__(
            category,
            reason="incompatible",
            budget_envelope=budget_envelope,
            candidates_considered=candidates_considered,
            detail=detail,
        )


class PatternStoreError(BuildForgeError):
    """兼容性经验库不可用"""


class UnknownComponentError(BuildForgeError, KeyError):
    """目录中没有该配件 id"""

    def __init__(self, component_ids):
        self.component_ids = list(component_ids)
        super().__init__(f"unknown component ids: {', '.join(self.component_ids)}")

    def __str__(self) -> str:
        return self.args[0]
