from ..scanners.readiness import ReadinessReport

def emit(report: ReadinessReport) -> str:
    lines = []
    for c in report.conditions.conditions:
        line = f"[{c.status.upper()}] {c.type} :: {c.reason} :: {c.message or '-'}"
        lines.append(line)
    for o in report.outcomes:
        attribution = o.attribution.value if o.attribution else "-"
        lines.append(f"  {o.namespace} ({o.category.value}) :: {o.verdict.value} :: level={o.level or '-'} :: attribution={attribution}")
    for s in report.skipped:
        lines.append(f"  {s.namespace} :: skipped :: {s.error}")
    return "\n".join(lines)
