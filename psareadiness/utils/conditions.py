import threading
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional, Tuple
from ..scanners.classify import NamespaceCategory, classify_namespace
from .findings import NamespaceOutcome, Verdict

POD_SECURITY_CUSTOMER_VIOLATION_TYPE = "PodSecurityCustomerEvaluationViolationConditionsDetected"
POD_SECURITY_OPENSHIFT_VIOLATION_TYPE = "PodSecurityOpenshiftEvaluationViolationConditionsDetected"
POD_SECURITY_RUN_LEVEL_ZERO_VIOLATION_TYPE = "PodSecurityRunLevelZeroEvaluationViolationConditionsDetected"
POD_SECURITY_DISABLED_SYNCER_VIOLATION_TYPE = "PodSecurityDisabledSyncerEvaluationViolationConditionsDetected"
POD_SECURITY_CUSTOMER_INCONCLUSIVE_TYPE = "PodSecurityCustomerEvaluationInconclusiveConditionsDetected"
POD_SECURITY_OPENSHIFT_INCONCLUSIVE_TYPE = "PodSecurityOpenshiftEvaluationInconclusiveConditionsDetected"
POD_SECURITY_RUN_LEVEL_ZERO_INCONCLUSIVE_TYPE = "PodSecurityRunLevelZeroEvaluationInconclusiveConditionsDetected"
POD_SECURITY_DISABLED_SYNCER_INCONCLUSIVE_TYPE = "PodSecurityDisabledSyncerEvaluationInconclusiveConditionsDetected"

# reason strings as published by the deployed readiness controller, consumers match on them
VIOLATION_REASON = "PSViolationsDetected"
INCONCLUSIVE_REASON = "PSViolationDecisionInconclusive"
DEFAULT_REASON = "ExpectedReason"

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"

MESSAGE_FORMATS = {
    VIOLATION_REASON: "Violations detected in namespaces: {}",
    INCONCLUSIVE_REASON: "Could not evaluate violations for namespaces: {}",
}

# (condition type, reason, bucket), in publishing order
CONDITION_LAYOUT: List[Tuple[str, str, Tuple[NamespaceCategory, Verdict]]] = [
    (POD_SECURITY_CUSTOMER_VIOLATION_TYPE, VIOLATION_REASON, (NamespaceCategory.CUSTOMER, Verdict.VIOLATING)),
    (POD_SECURITY_OPENSHIFT_VIOLATION_TYPE, VIOLATION_REASON, (NamespaceCategory.OPENSHIFT_MANAGED, Verdict.VIOLATING)),
    (POD_SECURITY_RUN_LEVEL_ZERO_VIOLATION_TYPE, VIOLATION_REASON, (NamespaceCategory.RUN_LEVEL_ZERO, Verdict.VIOLATING)),
    (POD_SECURITY_DISABLED_SYNCER_VIOLATION_TYPE, VIOLATION_REASON, (NamespaceCategory.SYNC_DISABLED, Verdict.VIOLATING)),
    (POD_SECURITY_CUSTOMER_INCONCLUSIVE_TYPE, INCONCLUSIVE_REASON, (NamespaceCategory.CUSTOMER, Verdict.INCONCLUSIVE)),
    (POD_SECURITY_OPENSHIFT_INCONCLUSIVE_TYPE, INCONCLUSIVE_REASON, (NamespaceCategory.OPENSHIFT_MANAGED, Verdict.INCONCLUSIVE)),
    (POD_SECURITY_RUN_LEVEL_ZERO_INCONCLUSIVE_TYPE, INCONCLUSIVE_REASON, (NamespaceCategory.RUN_LEVEL_ZERO, Verdict.INCONCLUSIVE)),
    (POD_SECURITY_DISABLED_SYNCER_INCONCLUSIVE_TYPE, INCONCLUSIVE_REASON, (NamespaceCategory.SYNC_DISABLED, Verdict.INCONCLUSIVE)),
]


class OperatorCondition(BaseModel):
    type: str
    status: Literal["True", "False"]
    reason: str
    message: Optional[str] = None
    last_transition_time: Optional[datetime] = None


class ConditionSet(BaseModel):
    conditions: List[OperatorCondition] = Field(default_factory=list)

    def get(self, condition_type: str) -> Optional[OperatorCondition]:
        for c in self.conditions:
            if c.type == condition_type:
                return c
        return None

    def detected(self) -> List[OperatorCondition]:
        return [c for c in self.conditions if c.status == CONDITION_TRUE]


def format_namespaces(namespaces: List[str]) -> str:
    return "[" + " ".join(namespaces) + "]"


def make_condition(condition_type: str, reason: str, namespaces: List[str],
                   now: Optional[datetime] = None) -> OperatorCondition:
    if namespaces:
        return OperatorCondition(
            type=condition_type,
            status=CONDITION_TRUE,
            reason=reason,
            message=MESSAGE_FORMATS[reason].format(format_namespaces(sorted(namespaces))),
            last_transition_time=now,
        )
    return OperatorCondition(
        type=condition_type,
        status=CONDITION_FALSE,
        reason=DEFAULT_REASON,
        last_transition_time=now,
    )


class PodSecurityConditions:
    """Namespace buckets for one readiness pass. Safe to fill from several threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._buckets: Dict[Tuple[NamespaceCategory, Verdict], List[str]] = {
            bucket: [] for _, _, bucket in CONDITION_LAYOUT
        }

    def _add(self, category: NamespaceCategory, verdict: Verdict, name: str) -> None:
        with self._lock:
            self._buckets[(category, verdict)].append(name)

    def add_violation(self, ns) -> None:
        self._add(classify_namespace(ns), Verdict.VIOLATING, ns.metadata.name)

    def add_inconclusive(self, ns) -> None:
        self._add(classify_namespace(ns), Verdict.INCONCLUSIVE, ns.metadata.name)

    def add_outcome(self, outcome: NamespaceOutcome) -> None:
        if outcome.verdict == Verdict.NOT_VIOLATING:
            return
        self._add(outcome.category, outcome.verdict, outcome.namespace)

    def namespaces(self, category: NamespaceCategory, verdict: Verdict) -> List[str]:
        with self._lock:
            return sorted(self._buckets.get((category, verdict), []))

    def to_condition_set(self, now: Optional[datetime] = None) -> ConditionSet:
        with self._lock:
            return ConditionSet(conditions=[
                make_condition(ctype, reason, list(self._buckets[bucket]), now)
                for ctype, reason, bucket in CONDITION_LAYOUT
            ])
