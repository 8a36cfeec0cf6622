"""
Progress reporting for import runs.

The import pipeline never prints by itself.  Every ledger event and log
message is handed to an :class:`ImportObserver`; the base class ignores
them, which keeps the core free of presentation side effects and makes it
easy to observe a run from tests.

:class:`ReportingObserver` is the observer used by the command line tool.
It prints ``[LEVEL] message`` lines and appends structured entries to
JSON Lines files under ``reports/import`` so that a run can be reviewed
or parsed afterwards:

``import.log``
    Every log message, one per line.
``success.jsonl``
    One entry per ledger event (uploads, creations, upserts, workflow
    transitions...).
``errors.jsonl``
    One entry per item that failed and was skipped.

The ``EVENTS`` dictionary maps ``(item type, action)`` pairs to human
readable messages.  Pairs not present in the dictionary fall back to
``"<item type> <action>"``.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional, Tuple

from content_migrator.models import ImportItemResult, ParsedContentItem
from content_migrator.utils.errors import describe_error

EVENTS: Dict[Tuple[str, str], str] = {
    ("binaryFile", "upload"): "Binary file uploaded",
    ("asset", "create"): "Asset created",
    ("asset", "skipUpdate"): "Asset already exists, skipped",
    ("contentItem", "create"): "Content item created",
    ("contentItem", "upsert"): "Content item updated",
    ("contentItem", "skipUpdate"): "Content item is up to date",
    ("languageVariant", "upsert"): "Language variant upserted",
    ("languageVariant", "createNewVersion"): "New version of published variant created",
    ("languageVariant", "unArchive"): "Language variant restored from archive",
    ("languageVariant", "publish"): "Language variant published",
    ("languageVariant", "archive"): "Language variant archived",
    ("languageVariant", "changeWorkflowStep"): "Workflow step changed",
    ("languageVariant", "skipUpdate"): "Archived language variant left untouched",
}

DEFAULT_REPORT_DIR = os.path.join("reports", "import")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


class ImportObserver:
    """Event sink for an import run.  All hooks are no-ops."""

    def on_message(self, message: str, level: str = "INFO") -> None:
        pass

    def on_asset_imported(self, result: ImportItemResult) -> None:
        pass

    def on_content_item_imported(self, result: ImportItemResult) -> None:
        pass

    def on_variant_transition(self, result: ImportItemResult) -> None:
        pass

    def on_item_failed(self, item: ParsedContentItem, exc: BaseException, *, stage: str) -> None:
        pass


class ReportingObserver(ImportObserver):
    """Print progress and keep JSON Lines reports of an import run."""

    def __init__(self, report_dir: str = DEFAULT_REPORT_DIR, *, echo: bool = True) -> None:
        self.report_dir = report_dir
        self.echo = echo

    @property
    def log_path(self) -> str:
        return os.path.join(self.report_dir, "import.log")

    @property
    def success_path(self) -> str:
        return os.path.join(self.report_dir, "success.jsonl")

    @property
    def error_path(self) -> str:
        return os.path.join(self.report_dir, "errors.jsonl")

    def on_message(self, message: str, level: str = "INFO") -> None:
        if self.echo:
            print(f"[{level}] {message}")
        os.makedirs(self.report_dir, exist_ok=True)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(f"{level}: {message}\n")

    def on_asset_imported(self, result: ImportItemResult) -> None:
        self.report_ok(result)

    def on_content_item_imported(self, result: ImportItemResult) -> None:
        self.report_ok(result)

    def on_variant_transition(self, result: ImportItemResult) -> None:
        self.report_ok(result)

    def on_item_failed(self, item: ParsedContentItem, exc: BaseException, *, stage: str) -> None:
        self.report_error(stage, item, exc)

    def report_ok(self, result: ImportItemResult, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log a successful ledger event.

        Parameters
        ----------
        result:
            The ledger entry that was just recorded.
        extra:
            Optional dictionary of additional fields to merge into the log entry.
        """
        message = EVENTS.get((result.item_type, result.action), f"{result.item_type} {result.action}")
        entry: Dict[str, Any] = {
            "action": result.action,
            "item_type": result.item_type,
            "message": message,
            "title": result.title,
            "import_id": result.import_id,
            "original_id": result.original_id,
            "original_codename": result.original_codename,
        }
        if extra:
            entry.update(extra)
        if self.echo:
            print(f"[OK] {result.title} | {result.item_type} | {result.action}")
        _write_jsonl(self.success_path, entry)

    def report_error(self, stage: str, item: ParsedContentItem, exc: Optional[BaseException] = None) -> None:
        """Log a failed item.

        Parameters
        ----------
        stage:
            ``"content item"`` or ``"language variant"``.
        item:
            The source row that could not be imported.
        exc:
            Optional exception instance that triggered the error.
        """
        message = f"Failed to import {stage} '{item.codename}' in language '{item.language}'"
        entry: Dict[str, Any] = {
            "stage": stage,
            "message": message,
            "codename": item.codename,
            "language": item.language,
        }
        if exc is not None:
            entry["error"] = describe_error(exc)
        if self.echo:
            print(f"[ERROR] {message}" + (f" | {entry['error']}" if exc is not None else ""))
        _write_jsonl(self.error_path, entry)
