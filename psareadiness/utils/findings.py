from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional
from ..scanners.classify import NamespaceCategory


class CheckResult(BaseModel):
    check_id: str
    allowed: bool = True
    forbidden_reason: Optional[str] = None
    forbidden_detail: Optional[str] = None


class Verdict(str, Enum):
    NOT_VIOLATING = "NotViolating"
    VIOLATING = "Violating"
    INCONCLUSIVE = "Inconclusive"


class Attribution(str, Enum):
    USER_WORKLOAD = "UserWorkload"
    OPERATOR_WORKLOAD = "OperatorWorkload"


class NamespaceOutcome(BaseModel):
    namespace: str
    category: NamespaceCategory
    verdict: Verdict
    # None when attribution was not computed
    attribution: Optional[Attribution] = None
    level: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    reason: Optional[str] = None

    @property
    def violating(self) -> bool:
        return self.verdict == Verdict.VIOLATING

    @property
    def inconclusive(self) -> bool:
        return self.verdict == Verdict.INCONCLUSIVE


class SkippedNamespace(BaseModel):
    namespace: str
    error: str
