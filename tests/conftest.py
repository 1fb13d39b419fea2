import threading

import pytest
from kubernetes import client

from psareadiness.scanners.enforce import (
    AUDIT_LEVEL_LABEL,
    MINIMALLY_SUFFICIENT_ANNOTATION,
    WARN_LEVEL_LABEL,
)
from psareadiness.scanners.violation import VALIDATED_SCC_SUBJECT_TYPE_ANNOTATION


def make_namespace(name, labels=None, annotations=None, minimally_sufficient=None, warn=None, audit=None):
    labels = dict(labels or {})
    annotations = dict(annotations or {})
    if minimally_sufficient is not None:
        annotations[MINIMALLY_SUFFICIENT_ANNOTATION] = minimally_sufficient
    if warn is not None:
        labels[WARN_LEVEL_LABEL] = warn
    if audit is not None:
        labels[AUDIT_LEVEL_LABEL] = audit
    return client.V1Namespace(
        metadata=client.V1ObjectMeta(name=name, labels=labels or None, annotations=annotations or None)
    )


def restricted_container(name="app", **overrides):
    sc = dict(
        allow_privilege_escalation=False,
        capabilities=client.V1Capabilities(drop=["ALL"]),
    )
    sc.update(overrides)
    return client.V1Container(name=name, image="registry.example/app:1", security_context=client.V1SecurityContext(**sc))


def restricted_spec(containers=None, volumes=None):
    return client.V1PodSpec(
        containers=containers or [restricted_container()],
        volumes=volumes,
        security_context=client.V1PodSecurityContext(
            run_as_non_root=True,
            seccomp_profile=client.V1SeccompProfile(type="RuntimeDefault"),
        ),
    )


def privileged_spec():
    return client.V1PodSpec(
        containers=[client.V1Container(
            name="app", image="registry.example/app:1",
            security_context=client.V1SecurityContext(privileged=True),
        )],
    )


def make_pod(name, spec, user=False, annotations=None):
    annotations = dict(annotations or {})
    if user:
        annotations[VALIDATED_SCC_SUBJECT_TYPE_ANNOTATION] = "user"
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, annotations=annotations or None),
        spec=spec,
    )


class FakeCluster:
    """Stands in for KubeCluster: emits canned warnings into the sink passed to each call."""

    def __init__(self, warnings=None, pods=None, apply_errors=None, list_errors=None):
        self.warnings = warnings or {}
        self.pods = pods or {}
        self.apply_errors = apply_errors or {}
        self.list_errors = list_errors or {}
        self.applied = []
        self.listed = []
        self._lock = threading.Lock()

    def dry_run_apply(self, namespace, labels, sink):
        with self._lock:
            self.applied.append((namespace, dict(labels)))
        if namespace in self.apply_errors:
            raise self.apply_errors[namespace]
        for w in self.warnings.get(namespace, []):
            sink.handle(w)

    def list_pods(self, namespace):
        with self._lock:
            self.listed.append(namespace)
        if namespace in self.list_errors:
            raise self.list_errors[namespace]
        return list(self.pods.get(namespace, []))


@pytest.fixture
def violation_warnings():
    return [
        'existing pods in namespace "violating-namespace" violate the new PodSecurity enforce level "restricted:latest"',
        "violating-pod: allowPrivilegeEscalation != false, unrestricted capabilities, runAsNonRoot != true, seccompProfile",
    ]
