"""Split untrusted artifact HTML into head, body, style and script parts.

The Extractor is a pure function of ``(html, artifact_id)``. Parsing is
forgiving: input may be a fragment or a full document, and a parser failure
degrades to treating the whole input as body markup with no extracted assets.

Index conventions:
- styles are numbered over recorded (non-empty) ``<style>`` nodes only
- scripts are numbered by position among every ``<script>`` node, so an empty
  script still consumes an index and the remaining indices stay tied to
  document position
"""

from __future__ import annotations

import logging
import re
import warnings

from bs4 import (
    BeautifulSoup,
    Declaration,
    Doctype,
    MarkupResemblesLocatorWarning,
    NavigableString,
    PageElement,
    ProcessingInstruction,
    Tag,
)

from artifactpress.errors import ParseDegraded
from artifactpress.events import log_decomposition, log_error_policy
from artifactpress.model.decomposition import Decomposition, ScriptBlock, StyleBlock

logger = logging.getLogger(__name__)

# Document wrapper markers a serializer can leave around a fragment
_WRAPPER_RE = re.compile(
    r"<\?xml[^>]*>|<!doctype[^>]*>|</?html\b[^>]*>|</?body\b[^>]*>",
    re.IGNORECASE,
)


def _parse(html: str, artifact_id: str) -> BeautifulSoup:
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
            return BeautifulSoup(html, "html.parser")
    except Exception as exc:  # noqa: BLE001 - any parser failure degrades
        raise ParseDegraded(artifact_id, cause=exc) from exc


def _text_of(node: Tag) -> str:
    """Raw text content of a style/script node, without entity decoding."""
    return "".join(str(child) for child in node.children if isinstance(child, NavigableString))


def strip_wrappers(markup: str) -> str:
    """Remove stray ``<html>``/``<body>``/doctype/XML-declaration markers."""
    return _WRAPPER_RE.sub("", markup or "").strip()


def _extract_styles(soup: BeautifulSoup) -> list[StyleBlock]:
    styles: list[StyleBlock] = []
    for node in soup.find_all("style"):
        content = _text_of(node)
        if not content.strip():
            continue
        styles.append(StyleBlock(index=len(styles), content=content))
        node.decompose()
    return styles


def _extract_scripts(soup: BeautifulSoup) -> list[ScriptBlock]:
    scripts: list[ScriptBlock] = []
    # Collect first; decomposing while walking the live tree skips siblings
    nodes = list(soup.find_all("script"))
    for index, node in enumerate(nodes):
        src = node.get("src")
        if isinstance(src, str) and src.strip():
            scripts.append(ScriptBlock(index=index, kind="external", content_or_url=src.strip()))
        else:
            content = _text_of(node)
            if content.strip():
                scripts.append(ScriptBlock(index=index, kind="inline", content_or_url=content))
            else:
                logger.debug("Dropping empty <script> at position %d", index)
        node.decompose()
    return scripts


def _gather_into_body(soup: BeautifulSoup, body: Tag) -> None:
    """Move content the parser left outside the first ``<body>`` into it.

    Markup after ``</body>``/``</html>`` and the children of any later
    ``<body>`` keep their document order around the first body's content.
    """
    ancestors = {id(parent) for parent in body.parents}
    before: list[PageElement] = []
    after: list[PageElement] = []
    seen_body = False

    def _walk(container: Tag) -> None:
        nonlocal seen_body
        for node in list(container.contents):
            if node is body:
                seen_body = True
                continue
            if isinstance(node, (Doctype, Declaration, ProcessingInstruction)):
                continue
            bucket = after if seen_body else before
            if isinstance(node, Tag) and (node.name == "html" or id(node) in ancestors):
                _walk(node)
            elif isinstance(node, Tag) and node.name == "body":
                bucket.extend(child.extract() for child in list(node.contents))
                node.decompose()
            else:
                bucket.append(node.extract())

    _walk(soup)
    if before or after:
        logger.debug("Moved %d stray node(s) into <body>", len(before) + len(after))
    for node in reversed(before):
        body.insert(0, node)
    for node in after:
        body.append(node)


def _split_document(soup: BeautifulSoup) -> Decomposition:
    styles = _extract_styles(soup)
    scripts = _extract_scripts(soup)

    head_fragment = ""
    head = soup.find("head")
    if isinstance(head, Tag):
        head_fragment = head.decode_contents().strip()
        head.decompose()

    body = soup.find("body")
    if isinstance(body, Tag):
        _gather_into_body(soup, body)
        remaining = body.decode_contents()
    else:
        remaining = soup.decode()

    return Decomposition(
        head_fragment=head_fragment,
        body_fragment=strip_wrappers(remaining),
        styles=styles,
        scripts=scripts,
    )


def decompose(html: str | None, artifact_id: str) -> Decomposition:
    """Decompose raw artifact HTML.

    Never raises for malformed input: a parse failure yields a degraded
    decomposition whose body is the original input.
    """

    if not html or not html.strip():
        return Decomposition()

    try:
        soup = _parse(html, artifact_id)
        try:
            result = _split_document(soup)
        except Exception as exc:  # noqa: BLE001 - tree surgery on hostile markup
            raise ParseDegraded(artifact_id, cause=exc) from exc
    except ParseDegraded as exc:
        log_error_policy("Extractor", "parse_failed", "degrade", str(exc))
        return Decomposition(body_fragment=html.strip(), degraded=True)

    log_decomposition(artifact_id, result)
    return result


__all__ = ["decompose", "strip_wrappers"]
