"""Centralized decision logging for the decomposition and render pipelines.

These helpers keep pipeline stages on one vocabulary when they report what
they extracted, which render branch they took and how they handled errors.
"""

from __future__ import annotations

import logging
from typing import Any

from artifactpress.model.decomposition import Decomposition

logger = logging.getLogger(__name__)


def log_decomposition(artifact_id: str, decomposition: Decomposition) -> None:
    """Log what the Extractor pulled out of an artifact.

    Args:
        artifact_id: Artifact the HTML belongs to
        decomposition: Result returned by ``decompose``
    """
    logger.info(
        "Artifact %s decomposed: %d style(s), %d inline script(s), %d external script(s)",
        artifact_id,
        len(decomposition.styles),
        len(decomposition.inline_scripts),
        len(decomposition.external_scripts),
    )
    logger.debug(
        "Artifact %s fragments: head=%d chars, body=%d chars",
        artifact_id,
        len(decomposition.head_fragment),
        len(decomposition.body_fragment),
    )


def log_render_branch(artifact_id: str, branch: str, context: dict[str, Any] | None = None) -> None:
    """Log the render branch chosen for a request.

    Args:
        artifact_id: Artifact being rendered
        branch: Branch name ("managed", "legacy", "empty")
        context: Optional context information
    """
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        logger.debug("Render %s: %s (%s)", artifact_id, branch, context_str)
    else:
        logger.debug("Render %s: %s", artifact_id, branch)


def log_error_policy(
    feature: str, error_type: str, action: str, details: str | None = None
) -> None:
    """Log error handling policy decisions.

    Args:
        feature: Pipeline stage encountering the error (e.g., "Extractor", "Renderer")
        error_type: Type of error (e.g., "parse_failed", "manifest_corrupt")
        action: Action taken (e.g., "degrade", "fallback", "abort")
        details: Optional additional details
    """
    if details:
        logger.warning("%s error policy: %s -> %s (%s)", feature, error_type, action, details)
    else:
        logger.warning("%s error policy: %s -> %s", feature, error_type, action)


__all__ = [
    "log_decomposition",
    "log_error_policy",
    "log_render_branch",
]
