"""
Translation of parsed element values into Management API element contracts.

Each element type declares which part of its value carries references and
how those references are resolved.  The set of supported types is closed;
an element of any other type cannot be imported and aborts the run.

Rich text is the only type that can embed components.  A ``data-codename``
marker that names a source row without workflow step (a component) is
turned into an entry of the element's ``components`` list.  The component
id is derived from its codename so that repeated imports produce the same
id.
"""

from __future__ import annotations

import copy
import json
import uuid
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from content_migrator.core.translation import TranslationTable
from content_migrator.models import ParsedContentItem, ParsedElement
from content_migrator.parsers.rich_text import (
    CODENAME_ATTR,
    UnresolvedCodenamePolicy,
    find_markers,
    is_markup,
    rewrite_rich_text,
    rewrite_tree,
)
from content_migrator.utils.errors import MissingElementContractError

COMPONENT_NAMESPACE = uuid.UUID("6f1c2a4e-3b0d-5c8e-9a7f-2d4b6e8c0a13")

READ_ONLY_TYPES: FrozenSet[str] = frozenset({"guidelines"})


# --- Builders for element contracts ---

def element(codename: str, value: Any, **extra: Any) -> Dict[str, Any]:
    contract: Dict[str, Any] = {"element": {"codename": codename}, "value": value}
    contract.update(extra)
    return contract


def id_reference(entity_id: str) -> Dict[str, str]:
    return {"id": entity_id}


def codename_reference(codename: str) -> Dict[str, str]:
    return {"codename": codename}


def component_id(codename: str) -> str:
    return str(uuid.uuid5(COMPONENT_NAMESPACE, codename))


def _as_list(value: Any) -> List[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [v for v in value if v not in (None, "")]
    return [value]


def _reference_key(value: Any, key: str) -> Optional[str]:
    # values come either as plain strings or as {"id": ...} / {"codename": ...}
    if isinstance(value, dict):
        return value.get(key)
    return str(value)


class ElementValueTranslator:
    """Builds element contracts with references valid in the target project."""

    def __init__(
        self,
        table: TranslationTable,
        source_items: Iterable[ParsedContentItem] = (),
        *,
        policy: UnresolvedCodenamePolicy = UnresolvedCodenamePolicy.PLACEHOLDER,
    ) -> None:
        self.table = table
        self.policy = UnresolvedCodenamePolicy(policy)
        self._components: Dict[tuple, ParsedContentItem] = {}
        for item in source_items:
            if item.is_component:
                self._components.setdefault((item.codename, item.language), item)
        self._handlers: Dict[str, Callable[..., Dict[str, Any]]] = {
            "text": self._scalar,
            "number": self._scalar,
            "date_time": self._scalar,
            "rich_text": self._rich_text,
            "multiple_choice": self._codenames,
            "taxonomy": self._codenames,
            "asset": self._assets,
            "modular_content": self._linked_items,
            "subpages": self._linked_items,
            "url_slug": self._url_slug,
            "custom": self._custom,
        }

    @property
    def supported_types(self) -> FrozenSet[str]:
        return frozenset(self._handlers)

    def translate_elements(self, elements: Iterable[ParsedElement], *, language: str) -> List[Dict[str, Any]]:
        return self._translate_all(elements, language, frozenset())

    def translate(self, parsed: ParsedElement, *, language: str) -> Optional[Dict[str, Any]]:
        """Return the contract for ``parsed``, or ``None`` for read-only elements."""
        return self._translate(parsed, language, frozenset())

    def _translate_all(self, elements: Iterable[ParsedElement], language: str, visiting: FrozenSet[str]) -> List[Dict[str, Any]]:
        contracts = []
        for parsed in elements:
            contract = self._translate(parsed, language, visiting)
            if contract is not None:
                contracts.append(contract)
        return contracts

    def _translate(self, parsed: ParsedElement, language: str, visiting: FrozenSet[str]) -> Optional[Dict[str, Any]]:
        if parsed.type in READ_ONLY_TYPES:
            return None
        handler = self._handlers.get(parsed.type)
        if handler is None:
            raise MissingElementContractError(
                f"Missing import contract for element '{parsed.codename}' of type '{parsed.type}'"
            )
        return handler(parsed, language, visiting)

    # --- handlers ---

    def _scalar(self, parsed: ParsedElement, language: str, visiting: FrozenSet[str]) -> Dict[str, Any]:
        return element(parsed.codename, parsed.value)

    def _codenames(self, parsed: ParsedElement, language: str, visiting: FrozenSet[str]) -> Dict[str, Any]:
        values = [_reference_key(v, "codename") for v in _as_list(parsed.value)]
        return element(parsed.codename, [codename_reference(c) for c in values if c])

    def _assets(self, parsed: ParsedElement, language: str, visiting: FrozenSet[str]) -> Dict[str, Any]:
        refs = []
        for value in _as_list(parsed.value):
            source_id = _reference_key(value, "id")
            if source_id:
                refs.append(id_reference(self.table.resolve_by_id(source_id) or source_id))
        return element(parsed.codename, refs)

    def _linked_items(self, parsed: ParsedElement, language: str, visiting: FrozenSet[str]) -> Dict[str, Any]:
        refs = []
        for value in _as_list(parsed.value):
            codename = _reference_key(value, "codename")
            if not codename:
                continue
            new_id = self.table.resolve_by_codename(codename)
            # items outside the import may still exist in the target under the same codename
            refs.append(id_reference(new_id) if new_id else codename_reference(codename))
        return element(parsed.codename, refs)

    def _url_slug(self, parsed: ParsedElement, language: str, visiting: FrozenSet[str]) -> Dict[str, Any]:
        return element(parsed.codename, parsed.value or "", mode="custom")

    def _custom(self, parsed: ParsedElement, language: str, visiting: FrozenSet[str]) -> Dict[str, Any]:
        value = parsed.value
        if is_markup(value):
            return element(parsed.codename, rewrite_rich_text(value, self.table, policy=self.policy))
        if isinstance(value, str):
            # exports usually carry custom values as serialized JSON
            try:
                decoded = json.loads(value)
            except ValueError:
                return element(parsed.codename, value)
            if not isinstance(decoded, (dict, list)):
                return element(parsed.codename, value)
            value = decoded
        if isinstance(value, (dict, list)):
            value = copy.deepcopy(value)
            rewrite_tree(value, self.table, policy=self.policy)
            value = json.dumps(value, ensure_ascii=False)
        return element(parsed.codename, value)

    def _rich_text(self, parsed: ParsedElement, language: str, visiting: FrozenSet[str]) -> Dict[str, Any]:
        html = parsed.value or ""
        components = self._components_of(html, language, visiting)
        contract = element(parsed.codename, rewrite_rich_text(html, self.table, policy=self.policy))
        if components:
            contract["components"] = components
        return contract

    def _components_of(self, html: str, language: str, visiting: FrozenSet[str]) -> List[Dict[str, Any]]:
        components: List[Dict[str, Any]] = []
        seen = set()
        for attr, codename in find_markers(html):
            if attr != CODENAME_ATTR or codename in seen:
                continue
            item = self._components.get((codename, language))
            if item is None:
                continue
            seen.add(codename)
            self.table.register(imported_id=component_id(codename), original_codename=codename)
            if codename in visiting:
                continue
            components.append(
                {
                    "id": self.table.resolve_by_codename(codename),
                    "type": codename_reference(item.type),
                    "elements": self._translate_all(item.elements, language, visiting | {codename}),
                }
            )
        return components
