import logging
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from artifactpress.builder.asset_writer import AssetWriter  # noqa: E402
from artifactpress.builder.manifest_store import ManifestStore  # noqa: E402
from artifactpress.render.renderer import Renderer  # noqa: E402
from artifactpress.service import ArtifactService  # noqa: E402
from artifactpress.storage.namespace import LocalNamespaceStorage  # noqa: E402
from artifactpress.storage.records import JsonEntityStore  # noqa: E402

ASSETS_URL = "https://example.test/artifact-assets/"


@pytest.fixture
def isolate_logging():
    """Isolate logging configuration between tests to prevent CI issues.

    This fixture prevents logging StreamHandler issues that occur in CI environments
    where stderr/stdout streams may be closed during test cleanup.

    Use this fixture explicitly in tests that have logging issues in CI.
    """
    # Store original logging state
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level

    # Clear all handlers to prevent stream access issues
    logging.root.handlers.clear()

    # Add a null handler that won't cause stream issues
    null_handler = logging.NullHandler()
    logging.root.addHandler(null_handler)

    yield

    # Restore original logging state
    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)


@pytest.fixture
def store(tmp_path: Path) -> JsonEntityStore:
    return JsonEntityStore(tmp_path / "records")


@pytest.fixture
def storage(tmp_path: Path) -> LocalNamespaceStorage:
    return LocalNamespaceStorage(tmp_path / "assets", ASSETS_URL)


@pytest.fixture
def manifests(store: JsonEntityStore) -> ManifestStore:
    return ManifestStore(store)


@pytest.fixture
def writer(storage: LocalNamespaceStorage) -> AssetWriter:
    return AssetWriter(storage)


@pytest.fixture
def service(
    store: JsonEntityStore,
    storage: LocalNamespaceStorage,
    manifests: ManifestStore,
    writer: AssetWriter,
) -> ArtifactService:
    return ArtifactService(store, storage, manifests, writer)


@pytest.fixture
def renderer(
    store: JsonEntityStore, storage: LocalNamespaceStorage, manifests: ManifestStore
) -> Renderer:
    return Renderer(store, storage, manifests)
