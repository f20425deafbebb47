from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, Literal, Protocol

Placement = Literal["head", "footer"]
AssetKind = Literal["style", "script"]

# Meta keys the pipeline reads and writes on the host's entity store
META_RAW_HTML = "raw_html"
META_DESCRIPTION = "description"
META_MANIFEST = "_manifest"
META_BODY_FRAGMENT = "_body_fragment"
META_GENERATION = "_generation"

PROTECTED_META_KEYS = frozenset({META_RAW_HTML})

# (artifact_id, key) -> allowed
WriteAuthorizer = Callable[[str, str], bool]

# (allow-list mapping, artifact_id) -> replacement mapping
AllowlistFilter = Callable[[dict[str, set[str]], str], Mapping[str, Any]]

# (policy string, artifact_id) -> replacement policy string
CspFilter = Callable[[str, str], str]


class EntityStore(Protocol):
    """Host entity storage holding artifact titles and meta fields."""

    def exists(self, artifact_id: str) -> bool:  # pragma: no cover - typing
        ...

    def get_title(self, artifact_id: str) -> str:  # pragma: no cover - typing
        ...

    def set_title(self, artifact_id: str, title: str) -> None:  # pragma: no cover - typing
        ...

    def get_meta(self, artifact_id: str, key: str) -> Any:  # pragma: no cover - typing
        ...

    def set_meta(self, artifact_id: str, key: str, value: Any) -> None:  # pragma: no cover - typing
        ...

    def set_meta_many(self, artifact_id: str, values: Mapping[str, Any]) -> None:  # pragma: no cover - typing
        ...

    def delete_meta(self, artifact_id: str, key: str) -> None:  # pragma: no cover - typing
        ...

    def authorize_write(self, artifact_id: str, key: str) -> None:  # pragma: no cover - typing
        ...


class NamespaceStorage(Protocol):
    """Per-artifact asset directories and the URLs they are served under."""

    def base_dir(self, artifact_id: str) -> Path:  # pragma: no cover - typing
        ...

    def base_url(self, artifact_id: str) -> str:  # pragma: no cover - typing
        ...

    def ensure_dir(self, path: Path) -> None:  # pragma: no cover - typing
        ...

    def write_file(self, path: Path, data: str) -> None:  # pragma: no cover - typing
        ...

    def list_files(self, path: Path) -> list[Path]:  # pragma: no cover - typing
        ...

    def delete_file(self, path: Path) -> None:  # pragma: no cover - typing
        ...

    def move_file(self, src: Path, dest: Path) -> None:  # pragma: no cover - typing
        ...

    def remove_dir(self, path: Path) -> None:  # pragma: no cover - typing
        ...

    def url_to_path(self, url: str) -> Path | None:  # pragma: no cover - typing
        ...

    def path_to_url(self, path: Path) -> str:  # pragma: no cover - typing
        ...


class AssetLoader(Protocol):
    """Host asset-loading mechanism; keeps registration order per placement."""

    def register(
        self,
        handle: str,
        url: str,
        deps: Sequence[str] = ...,
        version: str | None = ...,
        placement: Placement = ...,
        kind: AssetKind = ...,
    ) -> None:  # pragma: no cover - typing
        ...

    def render_tags(self, placement: Placement) -> str:  # pragma: no cover - typing
        ...
