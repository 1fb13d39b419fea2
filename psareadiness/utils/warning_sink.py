import re
from typing import Iterable, List

# <code> <agent> "<text>", several may share one header separated by commas
_WARNING_RE = re.compile(r'(\d{3})\s+(\S+)\s+"((?:[^"\\]|\\.)*)"')
_ESCAPE_RE = re.compile(r"\\(.)")


def parse_warning_header(value: str) -> List[str]:
    texts = [_ESCAPE_RE.sub(r"\1", m.group(3)) for m in _WARNING_RE.finditer(value or "")]
    if not texts and value and value.strip():
        texts = [value.strip()]
    return texts


class WarningSink:
    """Collects the warnings emitted by exactly one dry-run call."""

    def __init__(self):
        self._warnings: List[str] = []

    def handle(self, message: str) -> None:
        if message:
            self._warnings.append(message)

    def handle_headers(self, values: Iterable[str]) -> None:
        for v in values or []:
            for text in parse_warning_header(v):
                self.handle(text)

    def pop_all(self) -> List[str]:
        warnings, self._warnings = self._warnings, []
        return warnings
