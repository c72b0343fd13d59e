from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

# cog derives the next version from conventional commits.
BumpStrategy = Literal["auto"]

_VERSION_RE = re.compile(r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(text: str) -> SemVer | None:
    """Parse `1.2.3` or `v1.2.3`; anything else (pre-release, build metadata) is None."""
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))
