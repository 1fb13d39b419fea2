import json
from ..scanners.readiness import ReadinessReport

def emit(report: ReadinessReport) -> str:
    return json.dumps(report.model_dump(mode="json"), indent=2)
