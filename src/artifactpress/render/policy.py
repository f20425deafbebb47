"""Two-state trust policy: managed assets versus legacy raw HTML."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from artifactpress.model.manifest import Manifest
from artifactpress.render.csp import CspVariant

BASELINE_HEADERS: dict[str, str] = {
    "Content-Type": "text/html; charset=utf-8",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class RenderBranch(Enum):
    MANAGED = "managed"
    LEGACY = "legacy"
    EMPTY = "empty"


@dataclass(frozen=True)
class RenderPolicy:
    branch: RenderBranch
    csp_variant: CspVariant | None
    apply_allowlist: bool


MANAGED_POLICY = RenderPolicy(RenderBranch.MANAGED, CspVariant.STRICT, apply_allowlist=True)
LEGACY_POLICY = RenderPolicy(RenderBranch.LEGACY, CspVariant.PERMISSIVE, apply_allowlist=False)
EMPTY_POLICY = RenderPolicy(RenderBranch.EMPTY, None, apply_allowlist=False)


def select_policy(manifest: Manifest | None, raw_html: str | None) -> RenderPolicy:
    """Pick the branch from whichever data is present, in priority order."""
    if manifest is not None and manifest.is_renderable:
        return MANAGED_POLICY
    if raw_html and raw_html.strip():
        return LEGACY_POLICY
    return EMPTY_POLICY


def security_headers(csp: str | None = None) -> dict[str, str]:
    headers = dict(BASELINE_HEADERS)
    if csp:
        headers["Content-Security-Policy"] = csp
    return headers


__all__ = [
    "BASELINE_HEADERS",
    "EMPTY_POLICY",
    "LEGACY_POLICY",
    "MANAGED_POLICY",
    "RenderBranch",
    "RenderPolicy",
    "security_headers",
    "select_policy",
]
