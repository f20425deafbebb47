"""JSON-file entity store holding artifact titles and meta fields."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from artifactpress.errors import AuthorizationDenied, StorageFailure
from artifactpress.ids import normalize_artifact_id
from artifactpress.storage.json_io import atomic_write_text, dumps, read_json
from artifactpress.types import PROTECTED_META_KEYS, WriteAuthorizer

logger = logging.getLogger(__name__)


class JsonEntityStore:
    """One ``<id>.json`` record per artifact: ``{"title": ..., "meta": {...}}``.

    Writes to protected keys (``raw_html``) go through ``write_authorizer``
    first; without one every write is allowed.
    """

    def __init__(self, records_dir: Path, write_authorizer: WriteAuthorizer | None = None) -> None:
        self.records_dir = Path(records_dir)
        self.write_authorizer = write_authorizer

    def _path(self, artifact_id: str) -> Path:
        return self.records_dir / f"{normalize_artifact_id(artifact_id)}.json"

    def _load(self, artifact_id: str) -> dict[str, Any]:
        path = self._path(artifact_id)
        if not path.exists():
            return {"title": "", "meta": {}}
        try:
            data = read_json(path)
        except (OSError, ValueError) as exc:
            raise StorageFailure(artifact_id, "read record", path, cause=exc) from exc
        if not isinstance(data, dict):
            raise StorageFailure(artifact_id, "read record", path, cause=TypeError("not an object"))
        data.setdefault("title", "")
        if not isinstance(data.get("meta"), dict):
            data["meta"] = {}
        return data

    def _save(self, artifact_id: str, record: dict[str, Any]) -> None:
        path = self._path(artifact_id)
        try:
            atomic_write_text(path, dumps(record) + "\n")
        except OSError as exc:
            raise StorageFailure(artifact_id, "write record", path, cause=exc) from exc

    def exists(self, artifact_id: str) -> bool:
        return self._path(artifact_id).exists()

    def get_title(self, artifact_id: str) -> str:
        return str(self._load(artifact_id).get("title") or "")

    def set_title(self, artifact_id: str, title: str) -> None:
        record = self._load(artifact_id)
        record["title"] = title
        self._save(artifact_id, record)

    def authorize_write(self, artifact_id: str, key: str) -> None:
        """Raise ``AuthorizationDenied`` unless ``key`` may be written."""
        if key not in PROTECTED_META_KEYS or self.write_authorizer is None:
            return
        if not self.write_authorizer(artifact_id, key):
            logger.warning("Write of %s on artifact %s denied", key, artifact_id)
            raise AuthorizationDenied(artifact_id, key)

    def get_meta(self, artifact_id: str, key: str) -> Any:
        return self._load(artifact_id)["meta"].get(key)

    def set_meta(self, artifact_id: str, key: str, value: Any) -> None:
        self.authorize_write(artifact_id, key)
        record = self._load(artifact_id)
        record["meta"][key] = value
        self._save(artifact_id, record)

    def set_meta_many(self, artifact_id: str, values: Mapping[str, Any]) -> None:
        """Write several meta keys with a single record replace.

        Every protected key is authorized before anything is written.
        """
        for key in values:
            self.authorize_write(artifact_id, key)
        record = self._load(artifact_id)
        record["meta"].update(values)
        self._save(artifact_id, record)

    def delete_meta(self, artifact_id: str, key: str) -> None:
        if not self.exists(artifact_id):
            return
        record = self._load(artifact_id)
        if key in record["meta"]:
            del record["meta"][key]
            self._save(artifact_id, record)


__all__ = ["JsonEntityStore"]
