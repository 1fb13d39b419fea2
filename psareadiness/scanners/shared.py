from typing import Iterator, Tuple

def iter_containers(spec) -> Iterator[Tuple[object, str]]:
    # main containers
    for c in (spec.containers or []):
        yield c, c.name
    # init containers
    for c in (getattr(spec, "init_containers", None) or []):
        yield c, f"{c.name} (init)"
    # ephemeral containers
    for c in (getattr(spec, "ephemeral_containers", None) or []):
        yield c, f"{c.name} (ephemeral)"

def container_security_context(c):
    return getattr(c, "security_context", None)
