from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from artifactpress.ids import normalize_artifact_id
from artifactpress.model.manifest import Manifest
from artifactpress.types import META_BODY_FRAGMENT, META_MANIFEST, EntityStore

logger = logging.getLogger(__name__)


class ManifestStore:
    """Manifest persistence keyed by artifact id on top of the entity store.

    The body fragment lives under its own meta key; ``save`` writes it in the
    same record write as the manifest and ``load`` joins it back.
    """

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def save(
        self,
        artifact_id: str,
        manifest: Manifest,
        extra_meta: Mapping[str, Any] | None = None,
    ) -> None:
        """Store the manifest, its body fragment and ``extra_meta`` in one write.

        Raises:
            StorageFailure: If the record cannot be written; nothing is stored
            AuthorizationDenied: If ``extra_meta`` holds a protected key the
                store refuses
        """
        artifact_id = normalize_artifact_id(artifact_id)
        values: dict[str, Any] = dict(extra_meta or {})
        values[META_BODY_FRAGMENT] = manifest.body_fragment
        values[META_MANIFEST] = manifest.to_dict()
        self.store.set_meta_many(artifact_id, values)
        logger.debug("Saved manifest for artifact %s", artifact_id)

    def load(self, artifact_id: str) -> Manifest | None:
        """Return the stored manifest, or None when none was ever saved.

        Raises:
            TypeError, KeyError, ValueError: If the stored manifest is malformed
        """
        artifact_id = normalize_artifact_id(artifact_id)
        data = self.store.get_meta(artifact_id, META_MANIFEST)
        if data is None:
            return None
        body = self.store.get_meta(artifact_id, META_BODY_FRAGMENT)
        if body is not None and not isinstance(body, str):
            raise TypeError("Stored body fragment must be a string")
        return Manifest.from_dict(data, body_fragment=body or "")

    def clear(self, artifact_id: str) -> None:
        artifact_id = normalize_artifact_id(artifact_id)
        self.store.delete_meta(artifact_id, META_MANIFEST)
        self.store.delete_meta(artifact_id, META_BODY_FRAGMENT)


__all__ = ["ManifestStore"]
