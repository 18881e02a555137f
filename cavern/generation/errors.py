"""Generation error and diagnostic types.

Only ``ConfigurationError`` is raised; it is reported before any grid exists.
Everything else that can go wrong during a run is recoverable and surfaces as
a ``Diagnostic`` attached to the session.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

UNRESOLVED_CONNECTIVITY = "unresolved_connectivity"
EXHAUSTED_PLACEMENT_SEARCH = "exhausted_placement_search"
POOL_EXHAUSTED = "pool_exhausted"


class ConfigurationError(Exception):
    def __init__(self, field: str, message: str, code: str = "invalid"):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message
        self.code = code

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.message, "field": self.field, "code": self.code}


@dataclass
class Diagnostic:
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


__all__ = [
    "ConfigurationError",
    "Diagnostic",
    "UNRESOLVED_CONNECTIVITY",
    "EXHAUSTED_PLACEMENT_SEARCH",
    "POOL_EXHAUSTED",
]
