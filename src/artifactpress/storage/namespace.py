"""Filesystem-backed per-artifact asset namespaces."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from urllib.parse import unquote, urlparse

from artifactpress.storage.json_io import atomic_write_text

logger = logging.getLogger(__name__)


class LocalNamespaceStorage:
    """Asset namespaces laid out as ``<root>/<artifact-id>/`` and served
    under ``<base_url><artifact-id>/``.

    Raw ``OSError`` propagates; the Asset Writer turns it into
    ``StorageFailure`` with artifact context.
    """

    def __init__(self, root: Path, base_url: str) -> None:
        self.root = Path(root)
        self._base_url = base_url if base_url.endswith("/") else f"{base_url}/"

    def base_dir(self, artifact_id: str) -> Path:
        return self.root / artifact_id

    def base_url(self, artifact_id: str) -> str:
        return f"{self._base_url}{artifact_id}/"

    def ensure_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def write_file(self, path: Path, data: str) -> None:
        atomic_write_text(path, data)

    def list_files(self, path: Path) -> list[Path]:
        """Files directly inside ``path`` (non-recursive), sorted by name."""
        if not path.is_dir():
            return []
        return sorted(p for p in path.iterdir() if p.is_file())

    def delete_file(self, path: Path) -> None:
        path.unlink(missing_ok=True)

    def move_file(self, src: Path, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        src.replace(dest)

    def remove_dir(self, path: Path) -> None:
        if path.exists():
            shutil.rmtree(path)

    def url_to_path(self, url: str) -> Path | None:
        """Map a URL under the base URL back onto the filesystem.

        Returns None for URLs outside the namespace root, including any that
        try to climb out of it.
        """
        base = urlparse(self._base_url)
        target = urlparse(url)
        if base.netloc and target.netloc and target.netloc != base.netloc:
            return None
        if not target.path.startswith(base.path):
            return None
        relative = unquote(target.path[len(base.path) :])
        parts = [p for p in relative.split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            return None
        return self.root.joinpath(*parts)

    def path_to_url(self, path: Path) -> str:
        relative = Path(path).relative_to(self.root)
        return self._base_url + "/".join(relative.parts)


__all__ = ["LocalNamespaceStorage"]
