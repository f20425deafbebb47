"""Persist extracted styles and scripts as versioned files per artifact.

Each successful ``persist`` replaces the whole namespace: the new generation
is written to a staging directory first, then swapped in while the previous
files sit in a backup directory. A failure at any point leaves the previous
generation's files in place, so the previous manifest stays servable.

``begin`` stops after the swap and keeps the backup, so a caller that still
has to save the manifest can ``commit`` or ``rollback`` the generation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from artifactpress.errors import StorageFailure
from artifactpress.events import log_error_policy
from artifactpress.ids import (
    external_script_handle,
    normalize_artifact_id,
    script_filename,
    script_handle,
    style_filename,
    style_handle,
)
from artifactpress.model.decomposition import Decomposition
from artifactpress.model.manifest import Manifest, ScriptEntry, StyleEntry
from artifactpress.types import NamespaceStorage

logger = logging.getLogger(__name__)


def _sibling(base_dir: Path, suffix: str) -> Path:
    return base_dir.parent / f".{base_dir.name}.{suffix}"


def plan_assets(
    decomposition: Decomposition, artifact_id: str, base_url: str
) -> tuple[list[tuple[str, str]], Manifest]:
    """Return the files to write as ``(filename, content)`` and the manifest
    pointing at them. External scripts produce no file."""

    files: list[tuple[str, str]] = []
    manifest = Manifest(
        head_fragment=decomposition.head_fragment,
        body_fragment=decomposition.body_fragment,
    )

    for style in decomposition.styles:
        filename = style_filename(style.index)
        files.append((filename, style.content))
        manifest.styles.append(
            StyleEntry(handle=style_handle(artifact_id, style.index), url=base_url + filename)
        )

    for script in decomposition.scripts:
        if script.external:
            manifest.scripts.append(
                ScriptEntry(
                    handle=external_script_handle(artifact_id, script.index),
                    url=script.content_or_url,
                    external=True,
                )
            )
            continue
        filename = script_filename(script.index)
        files.append((filename, script.content_or_url))
        manifest.scripts.append(
            ScriptEntry(handle=script_handle(artifact_id, script.index), url=base_url + filename)
        )

    return files, manifest


@dataclass
class PendingGeneration:
    """A generation whose files are live but whose predecessor is still kept.

    ``commit`` drops the previous files once the manifest is saved;
    ``rollback`` puts them back when it could not be.
    """

    writer: AssetWriter
    artifact_id: str
    base_dir: Path
    backup: Path
    manifest: Manifest

    def commit(self) -> None:
        self.writer._discard_quietly(self.backup)

    def rollback(self) -> None:
        """Restore the previous generation's files.

        Raises:
            StorageFailure: If the previous files cannot be moved back
        """
        try:
            self.writer._restore(self.base_dir, self.backup)
        except OSError as exc:
            raise StorageFailure(self.artifact_id, "roll back assets", self.base_dir, cause=exc) from exc
        logger.info("Rolled back assets for artifact %s", self.artifact_id)


class AssetWriter:
    def __init__(self, storage: NamespaceStorage) -> None:
        self.storage = storage

    def persist(self, decomposition: Decomposition, artifact_id: str) -> Manifest:
        """Write the decomposition's assets and return the new manifest.

        Raises:
            StorageFailure: If the namespace cannot be created or any file
                cannot be written; the previous generation is left intact
        """
        pending = self.begin(decomposition, artifact_id)
        pending.commit()
        return pending.manifest

    def begin(self, decomposition: Decomposition, artifact_id: str) -> PendingGeneration:
        """Swap the new generation in, keeping the previous one until committed.

        Raises:
            StorageFailure: If the namespace cannot be created or any file
                cannot be written; the previous generation is left intact
        """
        artifact_id = normalize_artifact_id(artifact_id)
        base_dir = self.storage.base_dir(artifact_id)
        files, manifest = plan_assets(decomposition, artifact_id, self.storage.base_url(artifact_id))

        try:
            self.storage.ensure_dir(base_dir)
        except OSError as exc:
            raise StorageFailure(artifact_id, "create namespace", base_dir, cause=exc) from exc

        staging = _sibling(base_dir, "staging")
        self._stage(artifact_id, staging, files)
        backup = self._swap(artifact_id, base_dir, staging)

        logger.info(
            "Wrote %d asset file(s) for artifact %s (%d style(s), %d script(s))",
            len(files),
            artifact_id,
            len(manifest.styles),
            len(manifest.scripts),
        )
        return PendingGeneration(self, artifact_id, base_dir, backup, manifest)

    def _stage(self, artifact_id: str, staging: Path, files: list[tuple[str, str]]) -> None:
        path = staging
        try:
            self.storage.remove_dir(staging)
            self.storage.ensure_dir(staging)
            for filename, content in files:
                path = staging / filename
                self.storage.write_file(path, content)
        except OSError as exc:
            self._discard_quietly(staging)
            raise StorageFailure(artifact_id, "write asset", path, cause=exc) from exc

    def _swap(self, artifact_id: str, base_dir: Path, staging: Path) -> Path:
        backup = _sibling(base_dir, "previous")
        try:
            self.storage.remove_dir(backup)
            self.storage.ensure_dir(backup)
            for stale in self.storage.list_files(base_dir):
                self.storage.move_file(stale, backup / stale.name)
            for staged in self.storage.list_files(staging):
                self.storage.move_file(staged, base_dir / staged.name)
        except OSError as exc:
            try:
                self._restore(base_dir, backup)
            except OSError as restore_exc:
                log_error_policy("AssetWriter", "restore_failed", "abort", f"{base_dir}: {restore_exc}")
            self._discard_quietly(staging)
            raise StorageFailure(artifact_id, "promote assets", base_dir, cause=exc) from exc

        self._discard_quietly(staging)
        return backup

    def _restore(self, base_dir: Path, backup: Path) -> None:
        for partial in self.storage.list_files(base_dir):
            self.storage.delete_file(partial)
        for previous in self.storage.list_files(backup):
            self.storage.move_file(previous, base_dir / previous.name)
        self.storage.remove_dir(backup)

    def _discard_quietly(self, path: Path) -> None:
        try:
            self.storage.remove_dir(path)
        except OSError as exc:
            log_error_policy("AssetWriter", "cleanup_failed", "continue", f"{path}: {exc}")

    def discard(self, artifact_id: str) -> None:
        """Delete every asset file of an artifact and its namespace directory.

        Raises:
            StorageFailure: If a file or the directory cannot be removed
        """
        artifact_id = normalize_artifact_id(artifact_id)
        base_dir = self.storage.base_dir(artifact_id)
        try:
            for path in self.storage.list_files(base_dir):
                self.storage.delete_file(path)
            self.storage.remove_dir(base_dir)
            self.storage.remove_dir(_sibling(base_dir, "staging"))
            self.storage.remove_dir(_sibling(base_dir, "previous"))
        except OSError as exc:
            raise StorageFailure(artifact_id, "discard", base_dir, cause=exc) from exc
        logger.info("Discarded assets for artifact %s", artifact_id)


__all__ = ["AssetWriter", "PendingGeneration", "plan_assets"]
