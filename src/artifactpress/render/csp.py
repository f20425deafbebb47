"""Content-Security-Policy variants for rendered artifacts."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from urllib.parse import urlparse

from artifactpress.types import CspFilter

logger = logging.getLogger(__name__)


class CspVariant(Enum):
    """CSP variant options."""

    STRICT = "strict"  # Managed assets: scripts/styles come from files only
    PERMISSIVE = "permissive"  # Legacy raw HTML: inline scripts/styles allowed


def _absolute_source(url: str | None) -> str | None:
    """CSP source expression for an absolute URL, or None for relative ones."""
    if not url:
        return None
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}{parsed.path or '/'}"
    return None


def _origin_source(url: str) -> str | None:
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    if not parsed.scheme and url.startswith("//") and parsed.netloc:
        return parsed.netloc
    return None


def build_csp(
    variant: CspVariant,
    asset_base_url: str | None = None,
    script_origins: Iterable[str] = (),
) -> str:
    """Build the policy string for a variant.

    Args:
        variant: Which policy applies
        asset_base_url: Base URL of the artifact's asset namespace; added to
            script-src/style-src when absolute (relative URLs fall under 'self')
        script_origins: URLs of external scripts kept by reference; their
            origins join script-src
    """
    script_src = ["'self'"]
    style_src = ["'self'"]

    if variant is CspVariant.STRICT:
        base = _absolute_source(asset_base_url)
        if base:
            script_src.append(base)
            style_src.append(base)
        for url in script_origins:
            origin = _origin_source(url)
            if origin and origin not in script_src:
                script_src.append(origin)
        # Body markup keeps inline style attributes
        style_src.append("'unsafe-inline'")
    else:
        script_src.append("'unsafe-inline'")
        style_src.append("'unsafe-inline'")

    return "; ".join(
        [
            "default-src 'self'",
            "script-src " + " ".join(script_src),
            "style-src " + " ".join(style_src),
            "img-src 'self' data: blob:",
            "font-src 'self' data:",
            "connect-src 'self'",
            "frame-src 'none'",
            "frame-ancestors 'self'",
            "form-action 'self'",
            "base-uri 'self'",
        ]
    )


def compute_csp(
    variant: CspVariant,
    artifact_id: str,
    asset_base_url: str | None = None,
    script_origins: Iterable[str] = (),
    csp_filter: CspFilter | None = None,
) -> str:
    """Build the policy and hand it to the extension hook, if any."""
    policy = build_csp(variant, asset_base_url, script_origins)
    if csp_filter is not None:
        replaced = csp_filter(policy, artifact_id)
        if not isinstance(replaced, str):
            raise TypeError(f"CSP filter must return a string, got {type(replaced).__name__}")
        if replaced != policy:
            logger.debug("CSP for artifact %s replaced by filter", artifact_id)
        policy = replaced
    return policy


__all__ = ["CspVariant", "build_csp", "compute_csp"]
