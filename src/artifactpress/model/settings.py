"""Runtime settings for artifactpress.

Settings cover where artifact records and asset namespaces live on disk, the
public URL the namespaces are served under, and optional template overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

DEFAULT_STORAGE_ROOT = Path("artifacts-data")
DEFAULT_ASSETS_URL = "/artifact-assets/"
DEFAULT_SITE_NAME = "Artifacts"

ROOT_ENV_VAR = "ARTIFACTPRESS_ROOT"
ASSETS_URL_ENV_VAR = "ARTIFACTPRESS_ASSETS_URL"


@dataclass
class ArtifactSettings:
    """Settings shared by the CLI, the service and the renderer."""

    # Holds records/ (entity meta) and assets/ (per-artifact namespaces)
    storage_root: Path = DEFAULT_STORAGE_ROOT

    # Public URL prefix that maps onto storage_root/assets
    assets_url: str = DEFAULT_ASSETS_URL

    # Directory whose templates override the built-in ones file by file
    templates_dir: Path | None = None

    site_name: str = DEFAULT_SITE_NAME

    @property
    def records_dir(self) -> Path:
        return self.storage_root / "records"

    @property
    def assets_dir(self) -> Path:
        return self.storage_root / "assets"

    @classmethod
    def from_cli(
        cls,
        *,
        root: Path | str | None = None,
        assets_url: str | None = None,
        templates_dir: Path | str | None = None,
        site_name: str = DEFAULT_SITE_NAME,
    ) -> ArtifactSettings:
        """Build settings from CLI argument values.

        Missing values fall back to the environment, then to the defaults.

        Raises:
            ValueError: If the assets URL is neither absolute http(s) nor a root-relative path
        """
        env = cls.from_env()
        url = assets_url or env.assets_url
        parsed = urlparse(url)
        if parsed.scheme:
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(
                    f"Invalid assets URL '{url}'. Valid forms: ['https://host/path/', '/path/']"
                )
        elif not url.startswith("/"):
            raise ValueError(
                f"Invalid assets URL '{url}'. Valid forms: ['https://host/path/', '/path/']"
            )
        if not url.endswith("/"):
            url = f"{url}/"

        return cls(
            storage_root=Path(root) if root is not None else env.storage_root,
            assets_url=url,
            templates_dir=Path(templates_dir) if templates_dir is not None else None,
            site_name=site_name,
        )

    @classmethod
    def from_env(cls) -> ArtifactSettings:
        root = os.getenv(ROOT_ENV_VAR)
        assets_url = os.getenv(ASSETS_URL_ENV_VAR)
        return cls(
            storage_root=Path(root).expanduser() if root else DEFAULT_STORAGE_ROOT,
            assets_url=assets_url or DEFAULT_ASSETS_URL,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization/logging."""
        return {
            "storage_root": str(self.storage_root),
            "assets_url": self.assets_url,
            "templates_dir": str(self.templates_dir) if self.templates_dir else None,
            "site_name": self.site_name,
        }


__all__ = ["ArtifactSettings"]
