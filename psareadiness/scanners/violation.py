import logging
from typing import Optional
from .classify import NamespaceCategory, classify_namespace
from .enforce import ENFORCE_LEVEL_LABEL, resolve_enforce_level
from .levels import Level, parse_level
from .pods import evaluate_pod
from ..utils.errors import CollaboratorError, InternalError, InvalidLevel, NoSignal
from ..utils.findings import Attribution, NamespaceOutcome, Verdict
from ..utils.warning_sink import WarningSink

logger = logging.getLogger(__name__)

VALIDATED_SCC_SUBJECT_TYPE_ANNOTATION = "security.openshift.io/validated-scc-subject-type"


def is_user_pod(pod) -> bool:
    annotations = (pod.metadata.annotations or {}) if pod.metadata else {}
    return annotations.get(VALIDATED_SCC_SUBJECT_TYPE_ANNOTATION) == "user"


def should_check_for_user_scc(category: NamespaceCategory) -> bool:
    return category == NamespaceCategory.CUSTOMER


class ViolationDetector:
    """
    Decides whether enforcing a namespace's target level would be rejected.

    `cluster` provides `dry_run_apply(name, labels, sink)` and `list_pods(name)`.
    `evaluator` is called as `evaluator(level, pod_metadata, pod_spec)` and
    returns results carrying an `allowed` flag.
    """

    def __init__(self, cluster, evaluator=evaluate_pod, attribute: bool = True):
        self.cluster = cluster
        self.evaluator = evaluator
        self.attribute = attribute

    def detect(self, ns) -> NamespaceOutcome:
        name = ns.metadata.name
        category = classify_namespace(ns)

        try:
            level = resolve_enforce_level(ns)
        except NoSignal as e:
            logger.info("namespace %s: %s", name, e)
            return NamespaceOutcome(namespace=name, category=category, verdict=Verdict.INCONCLUSIVE, reason=str(e))

        level_value = level.value if isinstance(level, Level) else level
        warnings = self.simulate(name, level_value)
        if not warnings:
            return NamespaceOutcome(namespace=name, category=category, verdict=Verdict.NOT_VIOLATING, level=level_value)

        logger.info("namespace %s would violate %s: %d warning(s)", name, level_value, len(warnings))
        attribution: Optional[Attribution] = None
        if self.attribute:
            attribution = self.attribute_violation(ns, category, level_value)
        return NamespaceOutcome(
            namespace=name, category=category, verdict=Verdict.VIOLATING,
            attribution=attribution, level=level_value, warnings=warnings,
        )

    def simulate(self, name: str, level: str):
        # fresh sink per call, warnings from one namespace must never reach another
        sink = WarningSink()
        try:
            self.cluster.dry_run_apply(name, {ENFORCE_LEVEL_LABEL: level}, sink)
        except CollaboratorError:
            raise
        except Exception as e:
            raise CollaboratorError(f"dry-run apply failed for namespace {name}: {e}", namespace=name) from e
        finally:
            warnings = sink.pop_all()
        return warnings

    def attribute_violation(self, ns, category: NamespaceCategory, level: str) -> Attribution:
        if not should_check_for_user_scc(category):
            return Attribution.OPERATOR_WORKLOAD

        try:
            enforcement_level = parse_level(level.lower())
        except InvalidLevel as e:
            raise InternalError(f"unknown level: {level!r}") from e

        name = ns.metadata.name
        try:
            pods = self.cluster.list_pods(name)
        except CollaboratorError:
            raise
        except Exception as e:
            raise CollaboratorError(f"failed to list pods in namespace {name}: {e}", namespace=name) from e

        for pod in pods or []:
            if not is_user_pod(pod):
                continue
            if self.user_pod_violates(enforcement_level, name, pod):
                # pod admitted under a user SCC would be rejected at this level
                logger.debug("namespace %s: user pod %s violates %s", name, pod.metadata.name, enforcement_level)
                return Attribution.USER_WORKLOAD
        return Attribution.OPERATOR_WORKLOAD

    def user_pod_violates(self, level: Level, namespace: str, pod) -> bool:
        pod_name = pod.metadata.name
        try:
            results = self.evaluator(level, pod.metadata, pod.spec)
            if results is None:
                raise InternalError(f"pod evaluator returned no results for {namespace}/{pod_name}")
            return any(not result.allowed for result in results)
        except InternalError:
            raise
        except Exception as e:
            raise InternalError(f"invalid pod evaluation for {namespace}/{pod_name}: {e}") from e
