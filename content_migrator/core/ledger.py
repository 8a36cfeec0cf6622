from __future__ import annotations

from typing import Any, List, Optional

from content_migrator.core.translation import TranslationTable
from content_migrator.models import ImportItemResult
from content_migrator.utils.reporting import ImportObserver


class ImportLedger:
    """Append-only record of everything an import run did.

    Each recorded entry that carries a target id is also registered in the
    translation table.  ``fetch`` entries are kept in the ledger but not
    forwarded to the observer.
    """

    def __init__(self, table: Optional[TranslationTable] = None, observer: Optional[ImportObserver] = None) -> None:
        self.table = table if table is not None else TranslationTable()
        self.observer = observer if observer is not None else ImportObserver()
        self.results: List[ImportItemResult] = []

    def record(
        self,
        action: str,
        item_type: str,
        *,
        title: str,
        imported: Any = None,
        original: Any = None,
        import_id: Optional[str] = None,
        original_id: Optional[str] = None,
        original_codename: Optional[str] = None,
    ) -> ImportItemResult:
        result = ImportItemResult(
            action=action,
            item_type=item_type,
            title=title,
            imported=imported,
            original=original,
            import_id=import_id,
            original_id=original_id,
            original_codename=original_codename,
        )
        self.results.append(result)
        self.table.register(imported_id=import_id, original_id=original_id, original_codename=original_codename)

        if action == "fetch":
            return result
        if item_type in ("binaryFile", "asset"):
            self.observer.on_asset_imported(result)
        elif item_type == "contentItem":
            self.observer.on_content_item_imported(result)
        else:
            self.observer.on_variant_transition(result)
        return result

    def __len__(self) -> int:
        return len(self.results)
