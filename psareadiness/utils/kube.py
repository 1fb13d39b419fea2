import logging
from typing import Dict, Any, Optional, List
from kubernetes import client, config
from kubernetes.client import ApiException
from urllib3.exceptions import HTTPError
from ..scanners.enforce import ENFORCE_LEVEL_LABEL
from .errors import CollaboratorError
from .warning_sink import WarningSink

logger = logging.getLogger(__name__)

FIELD_MANAGER = "pod-security-readiness-controller"
APPLY_PATCH_CONTENT_TYPE = "application/apply-patch+yaml"


def load_clients(context: Optional[str] = None) -> Dict[str, Any]:
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config(context=context)
    return {
        "core": client.CoreV1Api(),
    }


def non_enforcing_selector() -> str:
    return f"!{ENFORCE_LEVEL_LABEL}"


def list_namespaces(core, label_selector: Optional[str] = None) -> List:
    namespaces = []
    cont = None
    while True:
        kwargs = {"limit": 200, "_continue": cont}
        if label_selector:
            kwargs["label_selector"] = label_selector
        try:
            resp = core.list_namespace(**kwargs)
        except (ApiException, HTTPError) as e:
            raise CollaboratorError(f"failed to list namespaces: {e}", status=getattr(e, "status", None)) from e
        namespaces.extend(resp.items or [])
        cont = resp.metadata._continue
        if not cont:
            break
    return namespaces


def list_non_enforcing_namespaces(core) -> List:
    return list_namespaces(core, label_selector=non_enforcing_selector())


class KubeCluster:
    """Cluster-facing calls the violation detector needs."""

    def __init__(self, core):
        self.core = core

    def dry_run_apply(self, namespace: str, labels: Dict[str, str], sink: WarningSink) -> None:
        body = {
            "apiVersion": "v1",
            "kind": "Namespace",
            "metadata": {"name": namespace, "labels": dict(labels)},
        }
        try:
            resp = self.core.patch_namespace(
                namespace, body,
                dry_run="All",
                field_manager=FIELD_MANAGER,
                _content_type=APPLY_PATCH_CONTENT_TYPE,
                _preload_content=False,
            )
        except (ApiException, HTTPError) as e:
            raise CollaboratorError(
                f"dry-run apply of {labels} to namespace {namespace} failed: {e}",
                namespace=namespace, status=getattr(e, "status", None),
            ) from e
        try:
            sink.handle_headers(resp.headers.getlist("Warning"))
        finally:
            resp.release_conn()

    def list_pods(self, namespace: str) -> List:
        pods = []
        cont = None
        while True:
            try:
                resp = self.core.list_namespaced_pod(namespace, limit=200, _continue=cont)
            except (ApiException, HTTPError) as e:
                logger.error("failed to list pods in namespace %s: %s", namespace, e)
                raise CollaboratorError(
                    f"failed to list pods in namespace {namespace}: {e}",
                    namespace=namespace, status=getattr(e, "status", None),
                ) from e
            pods.extend(resp.items or [])
            cont = resp.metadata._continue
            if not cont:
                break
        return pods
