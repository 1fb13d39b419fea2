from enum import Enum
from typing import Callable, FrozenSet, Tuple

LABEL_SYNC_CONTROL_LABEL = "security.openshift.io/scc.podSecurityLabelSync"
OPENSHIFT_PREFIX = "openshift"

# run-level zero namespaces are evaluated even though they are not openshift-prefixed
RUN_LEVEL_ZERO_NAMESPACES: FrozenSet[str] = frozenset({
    "default",
    "kube-system",
    "kube-public",
})


class NamespaceCategory(str, Enum):
    RUN_LEVEL_ZERO = "RunLevelZero"
    OPENSHIFT_MANAGED = "OpenShiftManaged"
    SYNC_DISABLED = "SyncDisabled"
    CUSTOMER = "Customer"


def _name(ns) -> str:
    return ns.metadata.name or ""


def is_run_level_zero(ns) -> bool:
    return _name(ns) in RUN_LEVEL_ZERO_NAMESPACES


def is_openshift_managed(ns) -> bool:
    return _name(ns).startswith(OPENSHIFT_PREFIX)


def is_sync_disabled(ns) -> bool:
    labels = ns.metadata.labels or {}
    return labels.get(LABEL_SYNC_CONTROL_LABEL) == "false"


CATEGORY_RULES: Tuple[Tuple[Callable[[object], bool], NamespaceCategory], ...] = (
    (is_run_level_zero, NamespaceCategory.RUN_LEVEL_ZERO),
    (is_openshift_managed, NamespaceCategory.OPENSHIFT_MANAGED),
    (is_sync_disabled, NamespaceCategory.SYNC_DISABLED),
)


def classify_namespace(ns) -> NamespaceCategory:
    for matches, category in CATEGORY_RULES:
        if matches(ns):
            return category
    return NamespaceCategory.CUSTOMER
