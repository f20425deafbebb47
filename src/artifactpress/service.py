"""Create/update glue: runs Extractor -> Asset Writer -> Manifest synchronously.

The order inside one write is: authorize the raw HTML write, decompose, swap
the new asset files in, then save the manifest, body fragment, raw HTML and
generation counter in a single record write. If that save fails the previous
asset files are moved back, so a failed update leaves the previous generation
untouched and servable.

Known race: a render running while ``persist`` swaps files for the same
artifact can pair the old manifest with new files (file names repeat across
generations). Writers are serialized by the host; readers are not guarded.
"""

from __future__ import annotations

import logging

from artifactpress.builder.asset_writer import AssetWriter
from artifactpress.builder.manifest_store import ManifestStore
from artifactpress.extract import decompose
from artifactpress.ids import normalize_artifact_id
from artifactpress.model.manifest import Manifest
from artifactpress.types import (
    META_DESCRIPTION,
    META_GENERATION,
    META_RAW_HTML,
    EntityStore,
    NamespaceStorage,
)

logger = logging.getLogger(__name__)


class ArtifactService:
    def __init__(
        self,
        store: EntityStore,
        storage: NamespaceStorage,
        manifests: ManifestStore | None = None,
        writer: AssetWriter | None = None,
    ) -> None:
        self.store = store
        self.storage = storage
        self.manifests = manifests or ManifestStore(store)
        self.writer = writer or AssetWriter(storage)

    def create(
        self,
        artifact_id: str | int,
        title: str,
        raw_html: str,
        description: str | None = None,
    ) -> Manifest:
        artifact_id = normalize_artifact_id(artifact_id)
        self.store.authorize_write(artifact_id, META_RAW_HTML)
        self.store.set_title(artifact_id, title)
        if description is not None:
            self.store.set_meta(artifact_id, META_DESCRIPTION, description)
        logger.info("Creating artifact %s", artifact_id)
        return self._publish(artifact_id, raw_html)

    def update(
        self,
        artifact_id: str | int,
        raw_html: str | None = None,
        title: str | None = None,
        description: str | None = None,
    ) -> Manifest | None:
        """Apply an update; returns the new manifest when the HTML changed."""
        artifact_id = normalize_artifact_id(artifact_id)
        if raw_html is not None:
            self.store.authorize_write(artifact_id, META_RAW_HTML)
        if title is not None:
            self.store.set_title(artifact_id, title)
        if description is not None:
            self.store.set_meta(artifact_id, META_DESCRIPTION, description)
        if raw_html is None:
            return None
        logger.info("Updating artifact %s", artifact_id)
        return self._publish(artifact_id, raw_html)

    def reprocess(self, artifact_id: str | int) -> Manifest | None:
        """Re-run the pipeline over the stored raw HTML.

        Moves legacy content (stored before extraction existed) onto the
        managed branch. Returns None when no raw HTML is stored.
        """
        artifact_id = normalize_artifact_id(artifact_id)
        raw_html = self.store.get_meta(artifact_id, META_RAW_HTML)
        if not isinstance(raw_html, str) or not raw_html.strip():
            logger.info("Artifact %s has no raw HTML to reprocess", artifact_id)
            return None
        self.store.authorize_write(artifact_id, META_RAW_HTML)
        return self._publish(artifact_id, raw_html)

    def delete(self, artifact_id: str | int) -> None:
        artifact_id = normalize_artifact_id(artifact_id)
        self.writer.discard(artifact_id)
        self.manifests.clear(artifact_id)
        for key in (META_RAW_HTML, META_DESCRIPTION, META_GENERATION):
            self.store.delete_meta(artifact_id, key)
        logger.info("Deleted artifact %s", artifact_id)

    def _publish(self, artifact_id: str, raw_html: str) -> Manifest:
        decomposition = decompose(raw_html, artifact_id)
        generation = self.store.get_meta(artifact_id, META_GENERATION)
        next_generation = (generation if isinstance(generation, int) else 0) + 1

        pending = self.writer.begin(decomposition, artifact_id)
        try:
            self.manifests.save(
                artifact_id,
                pending.manifest,
                {META_RAW_HTML: raw_html, META_GENERATION: next_generation},
            )
        except Exception:
            pending.rollback()
            raise
        pending.commit()

        logger.debug("Artifact %s now at generation %d", artifact_id, next_generation)
        return pending.manifest


__all__ = ["ArtifactService"]
