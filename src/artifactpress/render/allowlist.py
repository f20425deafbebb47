"""Markup allow-list applied to managed body fragments.

The allow-list maps tag names to the attribute names they may carry. The
``"data-*"`` entry inside a tag's set permits any ``data-`` attribute on that
tag. Anything not listed is stripped (attributes) or unwrapped (elements);
``script``-like containers are dropped together with their content.
"""

from __future__ import annotations

import logging
import re
import warnings
from collections.abc import Collection, Mapping

import bleach
from bleach.css_sanitizer import CSSSanitizer
from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from artifactpress.types import AllowlistFilter

logger = logging.getLogger(__name__)

DATA_WILDCARD = "data-*"

GLOBAL_ATTRIBUTES = frozenset(
    {
        "class",
        "id",
        "style",
        "title",
        "role",
        "lang",
        "dir",
        "hidden",
        "tabindex",
        "aria-label",
        "aria-labelledby",
        "aria-describedby",
        "aria-hidden",
        "aria-live",
        "aria-expanded",
        "aria-controls",
        "aria-pressed",
        "aria-selected",
        "aria-current",
    }
)

# Tags whose data-* attributes carry app state for artifact scripts
DATA_ATTRIBUTE_TAGS = frozenset(
    {
        "a",
        "button",
        "details",
        "div",
        "form",
        "input",
        "label",
        "li",
        "option",
        "select",
        "span",
        "summary",
        "textarea",
    }
)

_TAG_ATTRIBUTES: dict[str, tuple[str, ...]] = {
    # Structure
    "article": (),
    "aside": (),
    "div": (),
    "footer": (),
    "header": (),
    "main": (),
    "nav": (),
    "section": (),
    "span": (),
    "p": (),
    "br": (),
    "hr": (),
    # Headings
    "h1": (),
    "h2": (),
    "h3": (),
    "h4": (),
    "h5": (),
    "h6": (),
    # Text formatting
    "abbr": (),
    "b": (),
    "blockquote": ("cite",),
    "code": (),
    "del": ("cite", "datetime"),
    "em": (),
    "i": (),
    "ins": ("cite", "datetime"),
    "kbd": (),
    "mark": (),
    "pre": (),
    "q": ("cite",),
    "s": (),
    "samp": (),
    "small": (),
    "strong": (),
    "sub": (),
    "sup": (),
    "time": ("datetime",),
    "u": (),
    "var": (),
    # Lists
    "dd": (),
    "dl": (),
    "dt": (),
    "li": ("value",),
    "ol": ("start", "reversed", "type"),
    "ul": (),
    # Tables
    "caption": (),
    "col": ("span",),
    "colgroup": ("span",),
    "table": (),
    "tbody": (),
    "td": ("colspan", "rowspan", "headers"),
    "tfoot": (),
    "th": ("colspan", "rowspan", "scope", "headers", "abbr"),
    "thead": (),
    "tr": (),
    # Media
    "canvas": ("width", "height"),
    "figcaption": (),
    "figure": (),
    "img": ("src", "alt", "width", "height", "loading", "decoding", "srcset", "sizes"),
    # Links and interactive
    "a": ("href", "target", "rel", "download", "hreflang"),
    "button": ("type", "name", "value", "disabled"),
    "details": ("open",),
    "summary": (),
    "meter": ("value", "min", "max", "low", "high", "optimum"),
    "progress": ("value", "max"),
    # Forms
    "fieldset": ("disabled", "name"),
    "form": ("action", "method", "name", "autocomplete", "novalidate"),
    "input": (
        "type",
        "name",
        "value",
        "placeholder",
        "checked",
        "disabled",
        "readonly",
        "required",
        "min",
        "max",
        "step",
        "minlength",
        "maxlength",
        "pattern",
        "autocomplete",
        "size",
        "multiple",
        "list",
    ),
    "label": ("for",),
    "legend": (),
    "optgroup": ("label", "disabled"),
    "option": ("value", "selected", "disabled", "label"),
    "output": ("for", "name"),
    "select": ("name", "multiple", "disabled", "required", "size"),
    "textarea": (
        "name",
        "rows",
        "cols",
        "placeholder",
        "disabled",
        "readonly",
        "required",
        "maxlength",
        "wrap",
    ),
}

# Containers removed with everything inside them
DROP_CONTENT_TAGS = ("script", "style", "template", "iframe", "object", "embed", "noscript")

ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto", "tel", "data"})

_URL_ATTRIBUTES = frozenset({"href", "src", "action", "cite"})
_URL_NOISE_RE = re.compile(r"[`\x00-\x20\x7f-\xa0\s]+")
_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.\-]*):")

_CSS_SANITIZER = CSSSanitizer()


def default_allowlist() -> dict[str, set[str]]:
    """Fresh copy of the built-in allow-list, safe for hooks to mutate."""
    mapping: dict[str, set[str]] = {}
    for tag, attrs in _TAG_ATTRIBUTES.items():
        allowed = set(GLOBAL_ATTRIBUTES) | set(attrs)
        if tag in DATA_ATTRIBUTE_TAGS:
            allowed.add(DATA_WILDCARD)
        mapping[tag] = allowed
    return mapping


def build_allowlist(
    artifact_id: str, allowlist_filter: AllowlistFilter | None = None
) -> dict[str, frozenset[str]]:
    """Default allow-list passed through the optional extension hook.

    Tag and attribute names are lowercased on the way out.
    """
    mapping: Mapping[str, Collection[str]] = default_allowlist()
    if allowlist_filter is not None:
        mapping = allowlist_filter(default_allowlist(), artifact_id)
    return {
        str(tag).lower(): frozenset(str(attr).lower() for attr in attrs)
        for tag, attrs in mapping.items()
    }


def _is_data_url(value: str) -> bool:
    return _URL_NOISE_RE.sub("", value).lower().startswith("data:")


def _srcset_is_safe(tag: str, value: str) -> bool:
    """True when every ``srcset`` candidate is relative or uses an allowed scheme.

    Bleach never looks inside ``srcset``, so candidates are checked here one by
    one; ``data:`` candidates are only accepted on ``img``.
    """
    for candidate in value.split(","):
        match = _SCHEME_RE.match(_URL_NOISE_RE.sub("", candidate).lower())
        if match is None:
            continue
        scheme = match.group(1)
        if scheme not in ALLOWED_PROTOCOLS or (scheme == "data" and tag != "img"):
            return False
    return True


def _attribute_filter(allowlist: Mapping[str, frozenset[str]]):  # type: ignore[no-untyped-def]
    def _allow(tag: str, name: str, value: str) -> bool:
        allowed = allowlist.get(tag)
        if not allowed:
            return False
        name = name.lower()
        if name not in allowed:
            if not (name.startswith("data-") and DATA_WILDCARD in allowed):
                return False
        if name == "srcset":
            return _srcset_is_safe(tag, value or "")
        if name in _URL_ATTRIBUTES and _is_data_url(value or ""):
            return tag == "img" and name == "src"
        return True

    return _allow


def _drop_content_tags(fragment: str) -> str:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(fragment, "html.parser")
    dropped = 0
    for node in soup.find_all(DROP_CONTENT_TAGS):
        node.decompose()
        dropped += 1
    if dropped:
        logger.debug("Dropped %d script-like element(s) from body markup", dropped)
    return soup.decode()


def sanitize_body(fragment: str, allowlist: Mapping[str, frozenset[str]]) -> str:
    """Apply the allow-list to a body fragment.

    Attributes outside the allow-list, event handlers and ``javascript:``
    URLs are removed; disallowed elements are unwrapped and their text kept
    escaped; comments are dropped.
    """
    if not fragment or not fragment.strip():
        return ""
    cleaned = bleach.clean(
        _drop_content_tags(fragment),
        tags=frozenset(allowlist),
        attributes=_attribute_filter(allowlist),
        protocols=ALLOWED_PROTOCOLS,
        css_sanitizer=_CSS_SANITIZER,
        strip=True,
        strip_comments=True,
    )
    return cleaned.strip()


__all__ = [
    "DATA_ATTRIBUTE_TAGS",
    "DATA_WILDCARD",
    "DROP_CONTENT_TAGS",
    "GLOBAL_ATTRIBUTES",
    "build_allowlist",
    "default_allowlist",
    "sanitize_body",
]
