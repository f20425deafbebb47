from __future__ import annotations

from pathlib import Path

import pytest

from artifactpress.builder.manifest_store import ManifestStore
from artifactpress.errors import AuthorizationDenied, StorageFailure
from artifactpress.extract import extractor
from artifactpress.render.policy import RenderBranch
from artifactpress.render.renderer import Renderer
from artifactpress.service import ArtifactService
from artifactpress.storage.namespace import LocalNamespaceStorage
from artifactpress.storage.records import JsonEntityStore
from artifactpress.types import META_DESCRIPTION, META_GENERATION, META_RAW_HTML

SAMPLE = (
    "<html><head><title>T</title></head><body>"
    "<style>body{color:red}</style><p>Hi</p><script>console.log(1)</script>"
    "</body></html>"
)


def _files(storage: LocalNamespaceStorage, artifact_id: str) -> dict[str, str]:
    return {
        p.name: p.read_text(encoding="utf-8")
        for p in storage.list_files(storage.base_dir(artifact_id))
    }


def test_create_runs_the_pipeline(
    service: ArtifactService, store: JsonEntityStore, storage: LocalNamespaceStorage, manifests: ManifestStore
) -> None:
    manifest = service.create(42, "Demo", SAMPLE, description="first")

    assert _files(storage, "42") == {"style-0.css": "body{color:red}", "script-0.js": "console.log(1)"}
    assert manifest.body_fragment == "<p>Hi</p>"
    assert "<title>T</title>" in manifest.head_fragment
    assert manifests.load("42") == manifest
    assert store.get_title("42") == "Demo"
    assert store.get_meta("42", META_RAW_HTML) == SAMPLE
    assert store.get_meta("42", META_DESCRIPTION) == "first"
    assert store.get_meta("42", META_GENERATION) == 1


def test_update_replaces_assets_and_bumps_generation(
    service: ArtifactService, store: JsonEntityStore, storage: LocalNamespaceStorage
) -> None:
    service.create("42", "Demo", SAMPLE)
    manifest = service.update("42", raw_html="<style>p{}</style><style>q{}</style><p>two</p>")

    assert manifest is not None
    assert _files(storage, "42") == {"style-0.css": "p{}", "style-1.css": "q{}"}
    assert manifest.scripts == []
    assert store.get_meta("42", META_GENERATION) == 2


def test_update_without_html_only_touches_metadata(
    service: ArtifactService, store: JsonEntityStore, storage: LocalNamespaceStorage
) -> None:
    service.create("42", "Demo", SAMPLE)
    assert service.update("42", title="Renamed", description="d") is None

    assert store.get_title("42") == "Renamed"
    assert store.get_meta("42", META_DESCRIPTION) == "d"
    assert store.get_meta("42", META_GENERATION) == 1
    assert sorted(_files(storage, "42")) == ["script-0.js", "style-0.css"]


def test_denied_write_runs_nothing(tmp_path: Path) -> None:
    store = JsonEntityStore(tmp_path / "records", write_authorizer=lambda artifact_id, key: False)
    storage = LocalNamespaceStorage(tmp_path / "assets", "/artifact-assets/")
    service = ArtifactService(store, storage)

    with pytest.raises(AuthorizationDenied):
        service.create("42", "Demo", SAMPLE)

    assert not store.exists("42")
    assert not (tmp_path / "assets").exists()


def test_storage_failure_keeps_previous_generation(
    service: ArtifactService,
    store: JsonEntityStore,
    storage: LocalNamespaceStorage,
    manifests: ManifestStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    first = service.create("42", "Demo", SAMPLE)

    def _fail(path: Path, data: str) -> None:
        raise OSError("no space left on device")

    monkeypatch.setattr(storage, "write_file", _fail)
    with pytest.raises(StorageFailure):
        service.update("42", raw_html="<style>new{}</style><p>new</p>")

    assert manifests.load("42") == first
    assert store.get_meta("42", META_RAW_HTML) == SAMPLE
    assert store.get_meta("42", META_GENERATION) == 1
    assert _files(storage, "42")["style-0.css"] == "body{color:red}"


def test_reprocess_moves_legacy_content_to_managed(
    service: ArtifactService, store: JsonEntityStore, renderer: Renderer
) -> None:
    store.set_title("42", "Old")
    store.set_meta("42", META_RAW_HTML, SAMPLE)
    page = renderer.render("42")
    assert page is not None and page.branch is RenderBranch.LEGACY

    manifest = service.reprocess("42")
    assert manifest is not None
    page = renderer.render("42")
    assert page is not None and page.branch is RenderBranch.MANAGED
    assert store.get_meta("42", META_GENERATION) == 1


def test_reprocess_without_html(service: ArtifactService, store: JsonEntityStore) -> None:
    store.set_title("42", "Nothing")
    assert service.reprocess("42") is None
    assert store.get_meta("42", META_GENERATION) is None


def test_delete_clears_assets_and_meta(
    service: ArtifactService, store: JsonEntityStore, storage: LocalNamespaceStorage, renderer: Renderer
) -> None:
    service.create("42", "Demo", SAMPLE)
    service.delete("42")

    assert not storage.base_dir("42").exists()
    assert store.get_meta("42", META_RAW_HTML) is None
    page = renderer.render("42")
    assert page is not None and page.branch is RenderBranch.EMPTY


def test_degraded_parse_still_renders_through_allowlist(
    service: ArtifactService, renderer: Renderer, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _boom(*args: object, **kwargs: object) -> None:
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(extractor, "BeautifulSoup", _boom)
    manifest = service.create("42", "Degraded", "<p>text</p><script>alert(1)</script>")
    monkeypatch.undo()

    assert manifest.styles == [] and manifest.scripts == []
    page = renderer.render("42")
    assert page is not None
    assert page.branch is RenderBranch.MANAGED
    assert "<p>text</p>" in page.body
    assert "alert(1)" not in page.body


def test_failed_manifest_save_keeps_previous_generation(
    service: ArtifactService,
    store: JsonEntityStore,
    storage: LocalNamespaceStorage,
    manifests: ManifestStore,
    renderer: Renderer,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    old_html = "<style>old{}</style><p>old body</p><script>a()</script><script>b()</script>"
    first = service.create("42", "Demo", old_html)
    old_files = _files(storage, "42")

    def _fail(artifact_id: str, values: object) -> None:
        raise StorageFailure(artifact_id, "write record")

    monkeypatch.setattr(store, "set_meta_many", _fail)
    with pytest.raises(StorageFailure):
        service.update("42", raw_html="<style>new{}</style><p>new body</p><script>c()</script>")
    monkeypatch.undo()

    loaded = manifests.load("42")
    assert loaded == first
    assert loaded is not None and loaded.body_fragment == "<p>old body</p>"
    assert _files(storage, "42") == old_files
    assert store.get_meta("42", META_RAW_HTML) == old_html
    assert store.get_meta("42", META_GENERATION) == 1
    assert sorted(p.name for p in storage.root.iterdir()) == ["42"]

    page = renderer.render("42")
    assert page is not None and page.branch is RenderBranch.MANAGED
    assert "<p>old body</p>" in page.body
    for entry in [*loaded.styles, *loaded.scripts]:
        path = storage.url_to_path(entry.url)
        assert path is not None and path.is_file()


def test_publish_writes_record_once(
    service: ArtifactService, store: JsonEntityStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    service.create("42", "Demo", SAMPLE)
    writes: list[str] = []
    real_save = store._save

    def _counting_save(artifact_id: str, record: dict[str, object]) -> None:
        writes.append(artifact_id)
        real_save(artifact_id, record)

    monkeypatch.setattr(store, "_save", _counting_save)
    service.update("42", raw_html="<p>again</p>")
    assert writes == ["42"]


def test_delete_clears_manifest(service: ArtifactService, manifests: ManifestStore) -> None:
    service.create("42", "Demo", SAMPLE)
    service.delete("42")
    assert manifests.load("42") is None
