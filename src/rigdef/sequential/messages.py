"""Diagnostics sink for the sequential importer."""

from __future__ import annotations

from rigdef.keywords import Keyword
from rigdef.sequential.types import Message, Severity


_SEVERITY_LABELS: dict[Severity, str] = {
    "info": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
    "fatal": "FATAL ERROR",
}


class MessageLog:
    """Append-only, emission-ordered message log with per-severity counts.

    ``error_count`` includes fatal messages. Nothing here raises or aborts;
    whether a document is usable is decided by the caller from the counts.
    """

    __slots__ = (
        "_messages",
        "_num_errors",
        "_num_warnings",
        "_num_other",
        "current_keyword",
        "current_module",
    )

    def __init__(self) -> None:
        self.current_keyword: Keyword = "none"
        self.current_module: str = ""
        self._messages: list[Message] = []
        self._num_errors = 0
        self._num_warnings = 0
        self._num_other = 0

    def add(self, severity: Severity, text: str, keyword: Keyword, module_name: str) -> Message:
        message = Message(text=text, severity=severity, keyword=keyword, module_name=module_name)
        self._messages.append(message)
        if severity in ("error", "fatal"):
            self._num_errors += 1
        elif severity == "warning":
            self._num_warnings += 1
        else:
            self._num_other += 1
        return message

    def report(self, severity: Severity, text: str) -> Message:
        """Add a message tagged with the keyword and module currently processed."""
        return self.add(severity, text, self.current_keyword, self.current_module)

    def clear(self) -> None:
        self._messages.clear()
        self._num_errors = 0
        self._num_warnings = 0
        self._num_other = 0

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def error_count(self) -> int:
        return self._num_errors

    @property
    def warning_count(self) -> int:
        return self._num_warnings

    @property
    def other_count(self) -> int:
        return self._num_other

    def has_fatal(self) -> bool:
        return any(row.severity == "fatal" for row in self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def as_text(self) -> str:
        lines = [
            f"{_SEVERITY_LABELS[row.severity]} (keyword: {row.keyword}, module: {row.module_name}): {row.text}"
            for row in self._messages
        ]
        return "\n".join(lines) + ("\n" if lines else "")

    def to_dicts(self) -> list[dict[str, str]]:
        return [
            {
                "severity": row.severity,
                "keyword": row.keyword,
                "module_name": row.module_name,
                "text": row.text,
            }
            for row in self._messages
        ]
