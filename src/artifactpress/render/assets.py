"""Ordered asset registration, standing in for the host's asset loader."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from html import escape
from urllib.parse import quote

from artifactpress.types import AssetKind, Placement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredAsset:
    handle: str
    url: str
    deps: tuple[str, ...]
    version: str | None
    placement: Placement
    kind: AssetKind

    @property
    def versioned_url(self) -> str:
        if not self.version:
            return self.url
        sep = "&" if "?" in self.url else "?"
        return f"{self.url}{sep}ver={quote(self.version)}"


class AssetRegistry:
    """Keeps registrations in order within each placement bucket.

    A handle registers once; later registrations of the same handle are
    ignored.
    """

    def __init__(self) -> None:
        self._assets: dict[str, RegisteredAsset] = {}

    def register(
        self,
        handle: str,
        url: str,
        deps: Sequence[str] = (),
        version: str | None = None,
        placement: Placement = "head",
        kind: AssetKind = "script",
    ) -> None:
        if handle in self._assets:
            logger.debug("Asset %s already registered; ignoring", handle)
            return
        missing = [dep for dep in deps if dep not in self._assets]
        if missing:
            logger.warning("Asset %s registered before its dependencies %s", handle, missing)
        self._assets[handle] = RegisteredAsset(
            handle=handle,
            url=url,
            deps=tuple(deps),
            version=version,
            placement=placement,
            kind=kind,
        )

    def assets(self, placement: Placement | None = None) -> list[RegisteredAsset]:
        return [a for a in self._assets.values() if placement is None or a.placement == placement]

    def render_tags(self, placement: Placement) -> str:
        tags: list[str] = []
        for asset in self.assets(placement):
            url = escape(asset.versioned_url, quote=True)
            handle = escape(asset.handle, quote=True)
            if asset.kind == "style":
                tags.append(f'<link rel="stylesheet" id="{handle}-css" href="{url}">')
            else:
                tags.append(f'<script id="{handle}-js" src="{url}"></script>')
        return "\n".join(tags)


__all__ = ["AssetRegistry", "RegisteredAsset"]
