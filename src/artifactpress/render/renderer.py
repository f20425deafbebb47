"""Serve-time re-assembly of artifacts.

Three branches, checked in order:

1. managed - a manifest with a non-empty body fragment exists. Assets are
   registered with the loader (styles in the head, scripts at the end of the
   body in manifest order), the body goes through the allow-list, and the
   strict CSP applies.
2. legacy - no usable manifest but raw HTML is stored. The raw HTML is
   emitted unchanged under the permissive CSP.
3. empty - nothing stored. A placeholder page in the host wrapper, baseline
   headers only.

Missing or corrupt manifest data never fails a render; it only moves the
request to a later branch.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from artifactpress.builder.manifest_store import ManifestStore
from artifactpress.errors import StorageFailure
from artifactpress.events import log_error_policy, log_render_branch
from artifactpress.ids import normalize_artifact_id
from artifactpress.model.manifest import Manifest
from artifactpress.render.allowlist import build_allowlist, sanitize_body
from artifactpress.render.assets import AssetRegistry
from artifactpress.render.csp import compute_csp
from artifactpress.render.policy import RenderBranch, RenderPolicy, security_headers, select_policy
from artifactpress.render.templating import Templates, create_environment
from artifactpress.types import (
    META_GENERATION,
    META_RAW_HTML,
    AllowlistFilter,
    AssetLoader,
    CspFilter,
    EntityStore,
    NamespaceStorage,
)

logger = logging.getLogger(__name__)

_HEAD_TAG_RE = re.compile(r"</?head\b[^>]*>", re.IGNORECASE)
_TITLE_RE = re.compile(r"<title\b", re.IGNORECASE)


def strip_head_tags(fragment: str) -> str:
    return _HEAD_TAG_RE.sub("", fragment or "").strip()


@dataclass(frozen=True)
class RenderedPage:
    artifact_id: str
    branch: RenderBranch
    body: str
    headers: dict[str, str] = field(default_factory=dict)
    status: int = 200

    @property
    def csp(self) -> str | None:
        return self.headers.get("Content-Security-Policy")


class Renderer:
    def __init__(
        self,
        store: EntityStore,
        storage: NamespaceStorage,
        manifests: ManifestStore | None = None,
        templates: Templates | None = None,
        allowlist_filter: AllowlistFilter | None = None,
        csp_filter: CspFilter | None = None,
        asset_loader_factory: Callable[[], AssetLoader] = AssetRegistry,
        site_name: str = "Artifacts",
    ) -> None:
        self.store = store
        self.storage = storage
        self.manifests = manifests or ManifestStore(store)
        self.templates = templates or create_environment()
        self.allowlist_filter = allowlist_filter
        self.csp_filter = csp_filter
        self.asset_loader_factory = asset_loader_factory
        self.site_name = site_name

    def render(self, artifact_id: str) -> RenderedPage | None:
        """Render an artifact; None when the artifact does not exist."""
        artifact_id = normalize_artifact_id(artifact_id)
        if not self.store.exists(artifact_id):
            return None

        title = self._read(artifact_id, "title") or ""
        manifest = self._load_manifest(artifact_id)
        raw_html = self._read(artifact_id, META_RAW_HTML)
        policy = select_policy(manifest, raw_html)
        log_render_branch(artifact_id, policy.branch.value, {"has_manifest": manifest is not None})

        if policy.branch is RenderBranch.MANAGED and manifest is not None:
            return self._render_managed(artifact_id, title, manifest, policy)
        if policy.branch is RenderBranch.LEGACY and raw_html is not None:
            return self._render_legacy(artifact_id, raw_html, policy)
        return self._render_empty(artifact_id, title, policy)

    def _read(self, artifact_id: str, key: str) -> Any:
        try:
            if key == "title":
                return self.store.get_title(artifact_id)
            value = self.store.get_meta(artifact_id, key)
        except StorageFailure as exc:
            log_error_policy("Renderer", "record_unreadable", "fallback", str(exc))
            return None
        return value if isinstance(value, str) else None

    def _load_manifest(self, artifact_id: str) -> Manifest | None:
        try:
            return self.manifests.load(artifact_id)
        except (StorageFailure, KeyError, TypeError, ValueError) as exc:
            log_error_policy("Renderer", "manifest_corrupt", "fallback", f"{artifact_id}: {exc}")
            return None

    def _version_token(self, artifact_id: str) -> str | None:
        try:
            generation = self.store.get_meta(artifact_id, META_GENERATION)
        except StorageFailure:
            return None
        return str(generation) if generation else None

    def _policy_csp(
        self,
        policy: RenderPolicy,
        artifact_id: str,
        asset_base_url: str | None = None,
        script_origins: Iterable[str] = (),
    ) -> str | None:
        if policy.csp_variant is None:
            return None
        return compute_csp(
            policy.csp_variant,
            artifact_id,
            asset_base_url=asset_base_url,
            script_origins=script_origins,
            csp_filter=self.csp_filter,
        )

    def _render_managed(
        self, artifact_id: str, title: str, manifest: Manifest, policy: RenderPolicy
    ) -> RenderedPage:
        loader = self.asset_loader_factory()
        version = self._version_token(artifact_id)

        for style in manifest.styles:
            loader.register(style.handle, style.url, (), version, "head", "style")

        previous: str | None = None
        for script in manifest.scripts:
            deps = (previous,) if previous else ()
            loader.register(
                script.handle,
                script.url,
                deps,
                None if script.external else version,
                "footer",
                "script",
            )
            previous = script.handle

        body = manifest.body_fragment
        if policy.apply_allowlist:
            body = sanitize_body(body, build_allowlist(artifact_id, self.allowlist_filter))
        head_fragment = strip_head_tags(manifest.head_fragment)

        csp = self._policy_csp(
            policy,
            artifact_id,
            asset_base_url=self.storage.base_url(artifact_id),
            script_origins=[s.url for s in manifest.scripts if s.external],
        )
        html = self.templates.render_artifact(
            {
                "artifact_id": artifact_id,
                "title": title,
                "head_has_title": bool(_TITLE_RE.search(head_fragment)),
                "head_fragment": head_fragment,
                "head_assets": loader.render_tags("head"),
                "body": body,
                "footer_assets": loader.render_tags("footer"),
            }
        )
        return RenderedPage(
            artifact_id=artifact_id,
            branch=policy.branch,
            body=html,
            headers=security_headers(csp),
        )

    def _render_legacy(self, artifact_id: str, raw_html: str, policy: RenderPolicy) -> RenderedPage:
        return RenderedPage(
            artifact_id=artifact_id,
            branch=policy.branch,
            body=raw_html,
            headers=security_headers(self._policy_csp(policy, artifact_id)),
        )

    def _render_empty(self, artifact_id: str, title: str, policy: RenderPolicy) -> RenderedPage:
        html = self.templates.render_empty({"title": title, "site_name": self.site_name})
        return RenderedPage(
            artifact_id=artifact_id,
            branch=policy.branch,
            body=html,
            headers=security_headers(self._policy_csp(policy, artifact_id)),
        )


__all__ = ["RenderedPage", "Renderer", "strip_head_tags"]
