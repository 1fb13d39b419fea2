import pytest

from psareadiness.scanners.classify import (
    CATEGORY_RULES,
    LABEL_SYNC_CONTROL_LABEL,
    RUN_LEVEL_ZERO_NAMESPACES,
    NamespaceCategory,
    classify_namespace,
    is_openshift_managed,
    is_run_level_zero,
    is_sync_disabled,
)

from conftest import make_namespace

SYNC_OFF = {LABEL_SYNC_CONTROL_LABEL: "false"}


@pytest.mark.parametrize("name", sorted(RUN_LEVEL_ZERO_NAMESPACES))
@pytest.mark.parametrize("labels", [None, SYNC_OFF])
def test_run_level_zero_regardless_of_labels(name, labels):
    assert classify_namespace(make_namespace(name, labels=labels)) is NamespaceCategory.RUN_LEVEL_ZERO


@pytest.mark.parametrize("name", ["openshift", "openshift-monitoring", "openshift-etcd"])
def test_openshift_prefix_wins_over_sync_disabled(name):
    assert classify_namespace(make_namespace(name, labels=SYNC_OFF)) is NamespaceCategory.OPENSHIFT_MANAGED
    assert classify_namespace(make_namespace(name)) is NamespaceCategory.OPENSHIFT_MANAGED


def test_sync_disabled():
    assert classify_namespace(make_namespace("team-a", labels=SYNC_OFF)) is NamespaceCategory.SYNC_DISABLED


@pytest.mark.parametrize("labels", [None, {LABEL_SYNC_CONTROL_LABEL: "true"}, {"app": "web"}])
def test_customer(labels):
    assert classify_namespace(make_namespace("team-a", labels=labels)) is NamespaceCategory.CUSTOMER


def test_prefix_must_lead_the_name():
    assert classify_namespace(make_namespace("my-openshift")) is NamespaceCategory.CUSTOMER


def test_rules_are_ordered():
    assert [category for _, category in CATEGORY_RULES] == [
        NamespaceCategory.RUN_LEVEL_ZERO,
        NamespaceCategory.OPENSHIFT_MANAGED,
        NamespaceCategory.SYNC_DISABLED,
    ]


def test_rule_predicates():
    assert is_run_level_zero(make_namespace("kube-system"))
    assert not is_run_level_zero(make_namespace("kube-node-lease"))
    assert is_openshift_managed(make_namespace("openshift-ingress"))
    assert not is_openshift_managed(make_namespace("default"))
    assert is_sync_disabled(make_namespace("x", labels=SYNC_OFF))
    assert not is_sync_disabled(make_namespace("x"))
