import logging
from typing import List, Union
from .levels import Level, parse_level, strictest
from ..utils.errors import InvalidLevel, NoSignal

logger = logging.getLogger(__name__)

MINIMALLY_SUFFICIENT_ANNOTATION = "security.openshift.io/MinimallySufficientPodSecurityStandard"
ENFORCE_LEVEL_LABEL = "pod-security.kubernetes.io/enforce"
WARN_LEVEL_LABEL = "pod-security.kubernetes.io/warn"
AUDIT_LEVEL_LABEL = "pod-security.kubernetes.io/audit"

ALERT_LABELS = (WARN_LEVEL_LABEL, AUDIT_LEVEL_LABEL)


def resolve_enforce_level(ns) -> Union[Level, str]:
    """
    Pick the level a namespace would be enforced at.

    The minimally sufficient annotation is computed upstream by the label
    syncer and wins outright. Without it, the strictest parseable warn/audit
    label is used. Raises NoSignal when neither yields anything.
    """
    name = ns.metadata.name
    annotations = ns.metadata.annotations or {}
    if MINIMALLY_SUFFICIENT_ANNOTATION in annotations:
        value = annotations[MINIMALLY_SUFFICIENT_ANNOTATION]
        try:
            return parse_level(value)
        except InvalidLevel:
            logger.debug("namespace %s: using unrecognised annotation level %r verbatim", name, value)
            return value

    labels = ns.metadata.labels or {}
    viable: List[Level] = []
    for label in ALERT_LABELS:
        if label not in labels:
            continue
        try:
            viable.append(parse_level(labels[label]))
        except InvalidLevel:
            logger.debug("namespace %s: invalid level %r in label %s", name, labels[label], label)

    if not viable:
        raise NoSignal(name)
    return strictest(viable)
