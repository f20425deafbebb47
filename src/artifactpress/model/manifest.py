"""Persisted record of an artifact's extracted assets and retained fragments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MANIFEST_SCHEMA_VERSION = 1


@dataclass(slots=True, frozen=True)
class StyleEntry:
    handle: str
    url: str


@dataclass(slots=True, frozen=True)
class ScriptEntry:
    handle: str
    url: str
    external: bool = False


@dataclass(slots=True)
class Manifest:
    styles: list[StyleEntry] = field(default_factory=list)
    scripts: list[ScriptEntry] = field(default_factory=list)
    head_fragment: str = ""
    # Kept under its own meta key by ManifestStore, joined back on load
    body_fragment: str = ""

    @property
    def is_renderable(self) -> bool:
        return bool(self.body_fragment.strip())

    def to_dict(self) -> dict[str, Any]:
        """Serializable form without the body fragment."""
        return {
            "schema_version": MANIFEST_SCHEMA_VERSION,
            "styles": [{"handle": s.handle, "url": s.url} for s in self.styles],
            "scripts": [
                {"handle": s.handle, "url": s.url, "external": s.external} for s in self.scripts
            ],
            "head_fragment": self.head_fragment,
        }

    @classmethod
    def from_dict(cls, data: Any, body_fragment: str = "") -> Manifest:
        """Rebuild a manifest from ``to_dict`` output.

        Raises:
            TypeError, KeyError, ValueError: If the stored data is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"Manifest data must be an object, got {type(data).__name__}")
        version = data.get("schema_version", MANIFEST_SCHEMA_VERSION)
        if version != MANIFEST_SCHEMA_VERSION:
            raise ValueError(f"Unsupported manifest schema version {version!r}")

        styles = [StyleEntry(handle=str(s["handle"]), url=str(s["url"])) for s in data.get("styles", [])]
        scripts = [
            ScriptEntry(
                handle=str(s["handle"]),
                url=str(s["url"]),
                external=bool(s.get("external", False)),
            )
            for s in data.get("scripts", [])
        ]
        head_fragment = data.get("head_fragment", "")
        if not isinstance(head_fragment, str):
            raise TypeError("Manifest head_fragment must be a string")
        return cls(
            styles=styles,
            scripts=scripts,
            head_fragment=head_fragment,
            body_fragment=body_fragment or "",
        )


__all__ = ["MANIFEST_SCHEMA_VERSION", "Manifest", "ScriptEntry", "StyleEntry"]
