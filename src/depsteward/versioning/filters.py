"""Selection of which dependencies an update run touches."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .models import Dependency

_FILTER = re.compile(r"^([^:]+)?:([^:]+)?$")


@dataclass(frozen=True)
class UpdateFilter:
    """Matches dependencies by organization, artifact name, both, or neither (all)."""
    organization: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def parse(cls, text: Optional[str]) -> "UpdateFilter":
        """Parse ``org:``, ``:name`` or ``org:name``; anything else selects all."""
        match = _FILTER.match((text or "").strip())
        if match is None:
            return cls()
        return cls(match.group(1), match.group(2))

    def matches(self, dependency: Dependency) -> bool:
        return (self.organization is None or dependency.organization == self.organization) and (
            self.name is None or dependency.name == self.name
        )

    def show(self) -> str:
        if self.organization is None and self.name is None:
            return "all"
        if self.name is None:
            return self.organization or ""
        if self.organization is None:
            return self.name
        return f"{self.organization}:{self.name}"
