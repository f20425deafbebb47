"""Error taxonomy for the decomposition and render pipelines."""

from __future__ import annotations

from pathlib import Path


class ArtifactError(RuntimeError):
    """Base class for artifact pipeline failures."""


class InvalidArtifactId(ValueError):
    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            f"Invalid artifact id {value!r}: use letters, digits, hyphens and underscores only"
        )


class ParseDegraded(ArtifactError):
    """The HTML could not be parsed; the input is kept as opaque body markup.

    Raised by the parse step only. ``decompose`` always catches it.
    """

    def __init__(self, artifact_id: str, cause: Exception | None = None) -> None:
        self.artifact_id = artifact_id
        self.cause = cause
        message = f"Failed to parse HTML for artifact {artifact_id}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class StorageFailure(ArtifactError):
    """A namespace or record operation failed; the update is aborted."""

    def __init__(
        self,
        artifact_id: str,
        operation: str,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.artifact_id = artifact_id
        self.operation = operation
        self.path = path
        self.cause = cause
        message = f"Storage {operation} failed for artifact {artifact_id}"
        if path is not None:
            message = f"{message} at {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class AuthorizationDenied(ArtifactError):
    def __init__(self, artifact_id: str, key: str) -> None:
        self.artifact_id = artifact_id
        self.key = key
        super().__init__(f"Not allowed to write {key!r} on artifact {artifact_id}")


__all__ = [
    "ArtifactError",
    "AuthorizationDenied",
    "InvalidArtifactId",
    "ParseDegraded",
    "StorageFailure",
]
