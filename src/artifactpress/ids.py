from __future__ import annotations

import re

from .errors import InvalidArtifactId

_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def normalize_artifact_id(value: object) -> str:
    """Return the artifact id as a string usable in paths and handles.

    Integers and strings are accepted; anything that would not survive as a
    single path segment is rejected.
    """

    if isinstance(value, bool) or not isinstance(value, int | str):
        raise InvalidArtifactId(value)
    text = str(value).strip()
    if not _ID_RE.match(text):
        raise InvalidArtifactId(value)
    return text


def style_handle(artifact_id: str, index: int) -> str:
    return f"artifact-{artifact_id}-style-{index}"


def script_handle(artifact_id: str, index: int) -> str:
    return f"artifact-{artifact_id}-script-{index}"


def external_script_handle(artifact_id: str, index: int) -> str:
    return f"artifact-{artifact_id}-ext-{index}"


def style_filename(index: int) -> str:
    return f"style-{index}.css"


def script_filename(index: int) -> str:
    return f"script-{index}.js"
