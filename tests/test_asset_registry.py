from __future__ import annotations

import logging

import pytest

from artifactpress.render.assets import AssetRegistry, RegisteredAsset


def test_registration_order_is_kept_per_placement() -> None:
    registry = AssetRegistry()
    registry.register("s0", "/a/style-0.css", placement="head", kind="style")
    registry.register("j0", "/a/script-0.js", placement="footer")
    registry.register("s1", "/a/style-1.css", placement="head", kind="style")
    registry.register("j1", "/a/script-1.js", deps=("j0",), placement="footer")

    assert [a.handle for a in registry.assets("head")] == ["s0", "s1"]
    assert [a.handle for a in registry.assets("footer")] == ["j0", "j1"]
    assert [a.handle for a in registry.assets()] == ["s0", "j0", "s1", "j1"]


def test_first_registration_wins() -> None:
    registry = AssetRegistry()
    registry.register("h", "/first.js")
    registry.register("h", "/second.js")
    assert [a.url for a in registry.assets()] == ["/first.js"]


def test_missing_dependency_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    registry = AssetRegistry()
    with caplog.at_level(logging.WARNING, logger="artifactpress.render.assets"):
        registry.register("late", "/late.js", deps=("never",))
    assert "registered before its dependencies" in caplog.text


def test_versioned_url() -> None:
    asset = RegisteredAsset("h", "/a/x.js", (), "3", "footer", "script")
    assert asset.versioned_url == "/a/x.js?ver=3"
    with_query = RegisteredAsset("h", "/a/x.js?v=a", (), "3", "footer", "script")
    assert with_query.versioned_url == "/a/x.js?v=a&ver=3"
    unversioned = RegisteredAsset("h", "https://cdn.example/x.js", (), None, "footer", "script")
    assert unversioned.versioned_url == "https://cdn.example/x.js"


def test_render_tags() -> None:
    registry = AssetRegistry()
    registry.register("artifact-1-style-0", "/a/1/style-0.css", version="2", placement="head", kind="style")
    registry.register("artifact-1-script-0", "/a/1/script-0.js", version="2", placement="footer")
    registry.register("artifact-1-ext-1", 'https://cdn.example/x.js?a=1&b="2"', placement="footer")

    assert registry.render_tags("head") == (
        '<link rel="stylesheet" id="artifact-1-style-0-css" href="/a/1/style-0.css?ver=2">'
    )
    assert registry.render_tags("footer").splitlines() == [
        '<script id="artifact-1-script-0-js" src="/a/1/script-0.js?ver=2"></script>',
        '<script id="artifact-1-ext-1-js" src="https://cdn.example/x.js?a=1&amp;b=&quot;2&quot;"></script>',
    ]
