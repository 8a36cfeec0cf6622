"""
Exception taxonomy of the import pipeline.

``NotFoundError``
    The target answered 404 to a lookup.  Used as a branch signal by the
    import stages ("does this entity exist yet?") and never surfaced.

``ContentManagementError``
    Any other failure reported by the Management API (validation errors,
    conflicts, authorization) or a transport error that survived every
    retry.  Never retried by the import stages themselves.

``ConfigurationError``
    The target project or the caller's setup makes the import impossible
    (missing default workflow, element type without an import contract).
    Always aborts the run, even when failed items are being skipped.

``ImportAbortedError``
    Raised by the orchestrator when a run stops early.  It carries the
    ledger entries produced before the failure.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class ContentImportError(Exception):
    """Base class for every error raised by :mod:`content_migrator`."""


class ContentManagementError(ContentImportError):
    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[int] = None,
        request_id: Optional[str] = None,
        validation_errors: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.request_id = request_id
        self.validation_errors = validation_errors or []

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], *, status_code: Optional[int] = None) -> "ContentManagementError":
        """Build an error from the API's JSON error body."""
        validation = [
            str(v.get("message", v)) if isinstance(v, dict) else str(v)
            for v in payload.get("validation_errors") or []
        ]
        return cls(
            payload.get("message") or f"Management API returned {status_code}",
            status_code=status_code,
            error_code=payload.get("error_code"),
            request_id=payload.get("request_id"),
            validation_errors=validation,
        )


class NotFoundError(ContentManagementError):
    pass


class InvalidCollectionError(ContentImportError):
    pass


class InvalidContentItemError(ContentImportError):
    pass


class UnresolvedReferenceError(ContentImportError):
    pass


class ConfigurationError(ContentImportError):
    pass


class MissingDefaultWorkflowError(ConfigurationError):
    pass


class MissingElementContractError(ConfigurationError):
    pass


class ImportAbortedError(ContentImportError):
    def __init__(self, message: str, *, results: Optional[List[Any]] = None, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.results = results or []
        self.cause = cause


def describe_error(exc: BaseException) -> str:
    """Return a one-line, human readable description of ``exc``."""
    if isinstance(exc, ContentManagementError):
        parts = [f"Failed to import data with error: {exc.message}"]
        if exc.error_code is not None:
            parts.append(f"ErrorCode: {exc.error_code}")
        if exc.request_id:
            parts.append(f"RequestId: {exc.request_id}")
        if exc.validation_errors:
            parts.append(f"ValidationErrors: {', '.join(exc.validation_errors)}")
        return " | ".join(parts)
    return str(exc) or exc.__class__.__name__
