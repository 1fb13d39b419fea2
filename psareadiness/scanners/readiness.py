import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Callable, Iterable, List, Optional
from .violation import ViolationDetector
from ..utils.conditions import ConditionSet, PodSecurityConditions
from ..utils.errors import CollaboratorError, InternalError
from ..utils.findings import NamespaceOutcome, SkippedNamespace

logger = logging.getLogger(__name__)


class ReadinessReport(BaseModel):
    conditions: ConditionSet
    outcomes: List[NamespaceOutcome] = Field(default_factory=list)
    skipped: List[SkippedNamespace] = Field(default_factory=list)


def evaluate_namespace(detector: ViolationDetector, ns):
    try:
        return detector.detect(ns), None
    except (CollaboratorError, InternalError) as e:
        logger.warning("skipping namespace %s: %s", ns.metadata.name, e)
        return None, SkippedNamespace(namespace=ns.metadata.name, error=str(e))


def run_readiness_pass(namespaces: Iterable, detector: ViolationDetector, workers: int = 1,
                       publish: Optional[Callable[[ConditionSet], None]] = None,
                       now: Optional[datetime] = None) -> ReadinessReport:
    """
    Evaluate every namespace and fold the results into the eight conditions.

    A namespace that fails is logged and skipped, the rest are still reported.
    """
    namespaces = list(namespaces)
    conditions = PodSecurityConditions()
    outcomes: List[NamespaceOutcome] = []
    skipped: List[SkippedNamespace] = []

    def one(ns):
        outcome, skip = evaluate_namespace(detector, ns)
        if outcome is not None:
            conditions.add_outcome(outcome)
        return outcome, skip

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(one, namespaces))
    else:
        results = [one(ns) for ns in namespaces]

    for outcome, skip in results:
        if outcome is not None:
            outcomes.append(outcome)
        if skip is not None:
            skipped.append(skip)

    condition_set = conditions.to_condition_set(now)
    if publish is not None:
        publish(condition_set)
    return ReadinessReport(conditions=condition_set, outcomes=outcomes, skipped=skipped)
