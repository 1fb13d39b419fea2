import argparse, logging, sys
from datetime import datetime, timezone
from kubernetes.config import ConfigException
from .utils.kube import load_clients, list_namespaces, list_non_enforcing_namespaces, KubeCluster
from .utils.errors import CollaboratorError
from .scanners.violation import ViolationDetector
from .scanners.readiness import run_readiness_pass, ReadinessReport
from .reporting import json as json_report, text as text_report

logger = logging.getLogger("psareadiness")

def configure_logging(verbosity: int = 0) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logger.setLevel(level)
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)

def run_cluster_readiness(args) -> ReadinessReport:
    clients = load_clients(context=args.context)
    core = clients["core"]

    if args.all_namespaces:
        namespaces = list_namespaces(core)
    else:
        namespaces = list_non_enforcing_namespaces(core)
    logger.info("evaluating %d namespace(s)", len(namespaces))

    detector = ViolationDetector(KubeCluster(core), attribute=not args.no_attribution)
    return run_readiness_pass(namespaces, detector, workers=args.workers, now=datetime.now(timezone.utc))

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="psareadiness - check whether namespaces are ready for Pod Security Admission enforcement")
    ap.add_argument("--report", choices=["json","text"], default="json")
    ap.add_argument("--workers", type=int, default=1, help="Namespaces evaluated in parallel")
    ap.add_argument("--all-namespaces", action="store_true", help="Also evaluate namespaces that already carry an enforce label")
    ap.add_argument("--no-attribution", action="store_true", help="Do not inspect pods to attribute violations to user workloads")
    ap.add_argument("--context", help="kubeconfig context to use outside the cluster")
    ap.add_argument("-v", "--verbose", action="count", default=0)
    args = ap.parse_args(argv)

    configure_logging(args.verbose)
    if args.workers < 1:
        ap.error("--workers must be at least 1")

    try:
        report = run_cluster_readiness(args)
    except ConfigException as e:
        print(f"unable to load Kubernetes configuration: {e}", file=sys.stderr)
        return 1
    except CollaboratorError as e:
        print(f"unable to enumerate namespaces: {e}", file=sys.stderr)
        return 1

    if args.report == "json":
        print(json_report.emit(report))
    else:
        print(text_report.emit(report))

    return 0

if __name__ == "__main__":
    raise SystemExit(main())
