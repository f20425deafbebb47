"""Structured result of splitting raw artifact HTML into its parts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(slots=True, frozen=True)
class StyleBlock:
    index: int  # 0-based, contiguous over recorded styles
    content: str


@dataclass(slots=True, frozen=True)
class ScriptBlock:
    # Position among every <script> node seen, skipped ones included
    index: int
    kind: Literal["inline", "external"]
    # Script text for inline scripts, original src for external ones
    content_or_url: str

    @property
    def external(self) -> bool:
        return self.kind == "external"


@dataclass(slots=True)
class Decomposition:
    head_fragment: str = ""
    body_fragment: str = ""
    styles: list[StyleBlock] = field(default_factory=list)
    scripts: list[ScriptBlock] = field(default_factory=list)
    # True when the parser gave up and body_fragment holds the raw input
    degraded: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.head_fragment or self.body_fragment or self.styles or self.scripts)

    @property
    def inline_scripts(self) -> list[ScriptBlock]:
        return [s for s in self.scripts if s.kind == "inline"]

    @property
    def external_scripts(self) -> list[ScriptBlock]:
        return [s for s in self.scripts if s.kind == "external"]


__all__ = ["Decomposition", "ScriptBlock", "StyleBlock"]
