from __future__ import annotations

import pytest

from artifactpress.render.csp import CspVariant, build_csp, compute_csp


def _directives(policy: str) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for part in policy.split("; "):
        name, *sources = part.split(" ")
        out[name] = sources
    return out


def test_strict_policy_forbids_inline_scripts() -> None:
    d = _directives(build_csp(CspVariant.STRICT, "https://example.test/artifact-assets/42/"))
    assert d["script-src"] == ["'self'", "https://example.test/artifact-assets/42/"]
    assert "'unsafe-inline'" not in d["script-src"]
    assert d["style-src"] == ["'self'", "https://example.test/artifact-assets/42/", "'unsafe-inline'"]
    assert d["default-src"] == ["'self'"]
    assert d["frame-src"] == ["'none'"]
    assert d["img-src"] == ["'self'", "data:", "blob:"]


def test_strict_policy_with_relative_base_relies_on_self() -> None:
    d = _directives(build_csp(CspVariant.STRICT, "/artifact-assets/42/"))
    assert d["script-src"] == ["'self'"]


def test_strict_policy_adds_external_script_origins() -> None:
    policy = build_csp(
        CspVariant.STRICT,
        None,
        [
            "https://cdn.example/lib.js",
            "https://cdn.example/other.js",
            "//protocol.example/x.js",
            "relative.js",
        ],
    )
    d = _directives(policy)
    assert d["script-src"] == ["'self'", "https://cdn.example", "protocol.example"]


def test_permissive_policy_allows_inline() -> None:
    d = _directives(build_csp(CspVariant.PERMISSIVE, "https://example.test/a/", ["https://x.example/y.js"]))
    assert d["script-src"] == ["'self'", "'unsafe-inline'"]
    assert d["style-src"] == ["'self'", "'unsafe-inline'"]


def test_compute_csp_applies_filter() -> None:
    def _hook(policy: str, artifact_id: str) -> str:
        return f"{policy}; report-uri /csp/{artifact_id}"

    policy = compute_csp(CspVariant.STRICT, "42", csp_filter=_hook)
    assert policy.endswith("; report-uri /csp/42")
    assert policy.startswith("default-src 'self'")


def test_compute_csp_rejects_non_string_filter_result() -> None:
    with pytest.raises(TypeError):
        compute_csp(CspVariant.STRICT, "42", csp_filter=lambda policy, artifact_id: None)  # type: ignore[arg-type,return-value]
