from enum import Enum
from typing import Iterable
from ..utils.errors import InvalidLevel


class Level(str, Enum):
    PRIVILEGED = "privileged"
    BASELINE = "baseline"
    RESTRICTED = "restricted"

    def __str__(self) -> str:
        return self.value


_ORDER = {Level.PRIVILEGED: 0, Level.BASELINE: 1, Level.RESTRICTED: 2}


def parse_level(value) -> Level:
    if isinstance(value, Level):
        return value
    if not isinstance(value, str):
        raise InvalidLevel(repr(value))
    try:
        return Level(value)
    except ValueError:
        raise InvalidLevel(value) from None


def compare_levels(a, b) -> int:
    """-1, 0 or 1 as a is less strict than, as strict as, or stricter than b."""
    ra, rb = _ORDER[parse_level(a)], _ORDER[parse_level(b)]
    return (ra > rb) - (ra < rb)


def strictest(levels: Iterable[Level]) -> Level:
    target = None
    for level in levels:
        if target is None or compare_levels(target, level) <= 0:
            target = level
    if target is None:
        raise ValueError("strictest() arg is an empty iterable")
    return target
