"""
High-level orchestration of a content import.

This module defines a :class:`ContentImportTool` class that ties together
the Management API client, the import stages, the translation table and
the workflow reconciler into a complete pipeline.  It replays an
:class:`~content_migrator.models.ImportSource` into the target project in a
fixed order (assets, then content items, then language variants) so that
every reference can be resolved by the time it is written.

Configuration is supplied via a JSON file path or directly as a
dictionary.  The ``kontent`` section must include ``project_id`` and
``api_key``; import settings (skipping failed items, default workflow,
retry policy...) live under the ``import`` key.
"""

from __future__ import annotations

import json
import os
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from content_migrator import __tool_name__, __version__
from content_migrator.core.ledger import ImportLedger
from content_migrator.core.workflow import DEFAULT_WORKFLOW_CODENAME, WorkflowReconciler
from content_migrator.migrators.asset_importer import import_assets
from content_migrator.migrators.content_item_importer import import_content_item
from content_migrator.migrators.language_variant_importer import LanguageVariantImporter
from content_migrator.migrators.management_client import DEFAULT_BASE_URL, ManagementClient, RetryPolicy
from content_migrator.models import ContentItem, ImportAsset, ImportItemResult, ImportSource, ParsedContentItem
from content_migrator.parsers.element_values import ElementValueTranslator
from content_migrator.parsers.rich_text import UnresolvedCodenamePolicy
from content_migrator.utils.errors import ConfigurationError, ImportAbortedError, InvalidContentItemError, describe_error
from content_migrator.utils.pre_flight_checks import run_pre_flight_checks
from content_migrator.utils.reporting import DEFAULT_REPORT_DIR, ImportObserver, ReportingObserver

AssetFilter = Callable[[ImportAsset], bool]
ContentItemFilter = Callable[[ParsedContentItem], bool]


class ContentImportTool:
    """
    Encapsulates all state and behavior required to import an exported
    content graph into a target project.  Progress and failures are
    reported to an :class:`~content_migrator.utils.reporting.ImportObserver`;
    the outcome of the last run is available as :attr:`results`.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        config_file: Optional[str] = None,
        client=None,
        observer: Optional[ImportObserver] = None,
        can_import_asset: Optional[AssetFilter] = None,
        can_import_content_item: Optional[ContentItemFilter] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            # Default configuration
            config = {}

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("kontent", {})
        config["kontent"].setdefault("project_id", os.getenv("KONTENT_PROJECT_ID", ""))
        config["kontent"].setdefault("api_key", os.getenv("KONTENT_API_KEY", ""))
        config["kontent"].setdefault("base_url", os.getenv("KONTENT_BASE_URL", DEFAULT_BASE_URL))

        config.setdefault("import", {})
        config["import"].setdefault("skip_failed_items", False)
        config["import"].setdefault("default_workflow_codename", DEFAULT_WORKFLOW_CODENAME)
        config["import"].setdefault("unresolved_codename_policy", UnresolvedCodenamePolicy.PLACEHOLDER.value)
        config["import"].setdefault("rate_limit_rpm", 400)
        config["import"].setdefault("report_dir", DEFAULT_REPORT_DIR)
        config["import"].setdefault("retry", {})

        self.config = config
        settings = config["import"]
        self.skip_failed_items: bool = bool(settings["skip_failed_items"])
        self.default_workflow_codename: str = settings["default_workflow_codename"]
        self.codename_policy = UnresolvedCodenamePolicy(settings["unresolved_codename_policy"])

        self.can_import_asset = can_import_asset
        self.can_import_content_item = can_import_content_item
        self.observer = observer if observer is not None else ReportingObserver(settings["report_dir"])
        self.client = client if client is not None else ManagementClient.from_config(
            config["kontent"],
            retry_policy=retry_policy or RetryPolicy.from_config(settings["retry"]),
            rpm=int(settings["rate_limit_rpm"]),
        )

        self.results: List[ImportItemResult] = []
        self.removed_assets = 0
        self.removed_content_items = 0

    def log_message(self, message: str, level: str = "INFO") -> None:
        self.observer.on_message(message, level)

    def import_source(self, source: ImportSource) -> List[ImportItemResult]:
        """
        Import ``source`` into the target project and return the ledger.

        :raises ImportAbortedError: when an unrecovered error stops the run.
            The ledger entries produced before the failure are available as
            ``error.results`` (and as :attr:`results`).
        """
        ledger = ImportLedger(observer=self.observer)
        self.results = ledger.results

        try:
            run_pre_flight_checks(self.client, self.log_message)
            self.check_version(source)

            # this is an optional step where callers can exclude certain objects from being imported
            assets, items = self.remove_skipped_items(source)

            # import order matters
            if assets:
                self.log_message("Importing assets")
                import_assets(self.client, ledger, assets)
            else:
                self.log_message("There are no assets to import")

            if items:
                self.log_message("Importing content items")
                self.import_content_items(items, ledger)
            else:
                self.log_message("There are no content items to import")

            self.log_message("Finished import")
        except Exception as e:
            self.log_message(f"Import aborted: {describe_error(e)}", "ERROR")
            raise ImportAbortedError(
                f"Import aborted: {describe_error(e)}", results=list(ledger.results), cause=e
            ) from e
        return ledger.results

    def check_version(self, source: ImportSource) -> None:
        exported_with = source.metadata.tool_version if source.metadata else None
        if exported_with and exported_with != __version__:
            self.log_message(
                f"Version mismatch. Current version of '{__tool_name__}' is '{__version__}', "
                f"but export was created using version '{exported_with}'.",
                "WARNING",
            )
            self.log_message(
                f"Import may still succeed, but if it doesn't, please try using '{exported_with}' version of this tool.",
                "WARNING",
            )

    def remove_skipped_items(self, source: ImportSource) -> Tuple[List[ImportAsset], List[ParsedContentItem]]:
        assets = list(source.import_data.assets)
        items = list(source.import_data.items)

        if self.can_import_asset is not None:
            kept = [a for a in assets if self.can_import_asset(a)]
            self.removed_assets = len(assets) - len(kept)
            assets = kept
        if self.can_import_content_item is not None:
            kept_items = [i for i in items if self.can_import_content_item(i)]
            self.removed_content_items = len(items) - len(kept_items)
            items = kept_items

        if self.removed_assets:
            self.log_message(f"Removed '{self.removed_assets}' assets from import")
        if self.removed_content_items:
            self.log_message(f"Removed '{self.removed_content_items}' content items from import")
        return assets, items

    def import_content_items(self, items: List[ParsedContentItem], ledger: ImportLedger) -> Dict[str, ContentItem]:
        """
        Run both content passes over ``items``.

        The first pass creates or matches every content item, the second
        writes their language variants.  Variants are only written once all
        items exist, so rich text and linked items can reference any item of
        the import regardless of its position in the source.

        :return: Target content items by codename.
        """
        workflows = self.client.list_workflows()
        collections = self.client.list_collections()
        reconciler = WorkflowReconciler(workflows, default_workflow_codename=self.default_workflow_codename)
        translator = ElementValueTranslator(ledger.table, items, policy=self.codename_policy)
        variants = LanguageVariantImporter(self.client, ledger, reconciler, translator)

        # first process content items
        prepared: Dict[str, ContentItem] = {}
        failed: Set[str] = set()
        for item in items:
            # rows without workflow step are components, written as part of rich text
            if item.is_component or item.codename in prepared or item.codename in failed:
                continue
            try:
                prepared[item.codename] = import_content_item(self.client, ledger, item, collections)
            except Exception as e:
                self.handle_item_failure(item, e, "content item")
                failed.add(item.codename)

        # then process language variants
        for item in items:
            # failures of the item itself were already reported once
            if item.is_component or item.codename in failed:
                continue
            try:
                content_item = prepared.get(item.codename)
                if content_item is None:
                    raise InvalidContentItemError(f"Invalid content item for codename '{item.codename}'")
                variants.import_language_variant(item, content_item)
            except Exception as e:
                self.handle_item_failure(item, e, "language variant")

        return prepared

    def handle_item_failure(self, item: ParsedContentItem, error: Exception, stage: str) -> None:
        """Swallow and report ``error`` when skipping failed items, re-raise otherwise."""
        if isinstance(error, ConfigurationError) or not self.skip_failed_items:
            raise error
        self.log_message(
            f"Failed to import {stage} '{item.codename}' in language '{item.language}' | {describe_error(error)}",
            "ERROR",
        )
        self.observer.on_item_failed(item, error, stage=stage)
