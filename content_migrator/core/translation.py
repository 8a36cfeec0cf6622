"""
Reference translation between the source and the target project.

Identifiers of the source project are meaningless in the target: every
asset, content item or component that gets created or matched during an
import receives a new id.  :class:`TranslationTable` remembers these
mappings for the duration of one run so that references embedded in
element values can be rewritten before they are written.

The table is append-only.  The first registration of a given source id or
codename wins; later registrations of the same key are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional


@dataclass(frozen=True)
class TranslationEntry:
    imported_id: str
    original_id: Optional[str] = None
    original_codename: Optional[str] = None


class TranslationTable:
    def __init__(self) -> None:
        self._entries: List[TranslationEntry] = []
        self._by_id: Dict[str, str] = {}
        self._by_codename: Dict[str, str] = {}

    def register(
        self,
        *,
        imported_id: Optional[str],
        original_id: Optional[str] = None,
        original_codename: Optional[str] = None,
    ) -> bool:
        """Register a mapping.  Returns ``True`` when a new key was indexed."""
        if not imported_id:
            return False
        indexed = False
        if original_id and original_id not in self._by_id:
            self._by_id[original_id] = imported_id
            indexed = True
        if original_codename and original_codename not in self._by_codename:
            self._by_codename[original_codename] = imported_id
            indexed = True
        if indexed:
            self._entries.append(
                TranslationEntry(imported_id=imported_id, original_id=original_id, original_codename=original_codename)
            )
        return indexed

    def resolve_by_id(self, original_id: Optional[str]) -> Optional[str]:
        if not original_id:
            return None
        return self._by_id.get(original_id)

    def resolve_by_codename(self, codename: Optional[str]) -> Optional[str]:
        if not codename:
            return None
        return self._by_codename.get(codename)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranslationEntry]:
        return iter(list(self._entries))
