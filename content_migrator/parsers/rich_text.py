"""
Reference rewriting for rich text and loosely shaped value trees.

Rich text exported from the source project links to other entities through
quoted attributes inside inline markup::

    <object type="application/kenticocloud" data-type="item" data-codename="hero"></object>
    <a data-item-id="4b62...">Read more</a>
    <figure data-asset-id="0f3c..." data-image-id="0f3c..."></figure>

:func:`rewrite_rich_text` replaces every such identifier with the one the
entity received in the target project.  All five marker kinds are matched
by a single pattern and rewritten in one left-to-right pass.

* ``data-codename`` markers are looked up by codename.  A hit is written
  back as ``data-id="<new id>"``.  A miss is handled according to the
  :class:`UnresolvedCodenamePolicy`; the default replaces the value with
  :data:`PLACEHOLDER_ID` so that no foreign codename reaches the target.
* ``data-item-id``, ``data-asset-id``, ``data-image-id`` and ``data-id``
  markers are looked up by id.  A hit keeps the attribute name, a miss
  leaves the marker untouched since such ids usually point at entities
  outside the import.

Rewriting is idempotent once every reference is valid in the target.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Tuple

from content_migrator.core.translation import TranslationTable
from content_migrator.utils.errors import UnresolvedReferenceError

__all__ = [
    "PLACEHOLDER_ID",
    "UnresolvedCodenamePolicy",
    "find_markers",
    "is_markup",
    "rewrite_rich_text",
    "rewrite_tree",
]

PLACEHOLDER_ID = "00000000-0000-0000-0000-000000000000"

CODENAME_ATTR = "data-codename"
ID_ATTRS = ("data-item-id", "data-asset-id", "data-image-id", "data-id")

_MARKER_RE = re.compile(r'(?<![\w-])(data-codename|data-item-id|data-asset-id|data-image-id|data-id)="([^"]*)"')


class UnresolvedCodenamePolicy(str, Enum):
    PLACEHOLDER = "placeholder"
    LEAVE = "leave"
    FAIL = "fail"


def find_markers(text: str) -> List[Tuple[str, str]]:
    """Return ``(attribute, value)`` pairs of every marker in ``text``, in order."""
    if not text:
        return []
    return [(m.group(1), m.group(2)) for m in _MARKER_RE.finditer(text)]


def is_markup(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("<") and value.endswith(">")


def rewrite_rich_text(
    text: str,
    table: TranslationTable,
    *,
    policy: UnresolvedCodenamePolicy = UnresolvedCodenamePolicy.PLACEHOLDER,
) -> str:
    if not text:
        return text
    policy = UnresolvedCodenamePolicy(policy)

    def _replace(match: "re.Match[str]") -> str:
        attr, value = match.group(1), match.group(2)
        if not value:
            return match.group(0)

        if attr == CODENAME_ATTR:
            new_id = table.resolve_by_codename(value)
            if new_id:
                return f'data-id="{new_id}"'
            if policy is UnresolvedCodenamePolicy.LEAVE:
                return match.group(0)
            if policy is UnresolvedCodenamePolicy.FAIL:
                raise UnresolvedReferenceError(f"Rich text references unknown codename '{value}'")
            return f'data-id="{PLACEHOLDER_ID}"'

        new_id = table.resolve_by_id(value)
        if new_id:
            return f'{attr}="{new_id}"'
        return match.group(0)

    return _MARKER_RE.sub(_replace, text)


def rewrite_tree(
    data: Any,
    table: TranslationTable,
    *,
    policy: UnresolvedCodenamePolicy = UnresolvedCodenamePolicy.PLACEHOLDER,
) -> None:
    """Rewrite references inside nested lists and dicts, in place.

    Markup strings go through :func:`rewrite_rich_text`; values stored
    under an ``id`` key (any casing) are translated by id when the table
    knows them.
    """
    if isinstance(data, list):
        for index, value in enumerate(data):
            if is_markup(value):
                data[index] = rewrite_rich_text(value, table, policy=policy)
            elif isinstance(value, (dict, list)):
                rewrite_tree(value, table, policy=policy)
    elif isinstance(data, dict):
        for key in list(data.keys()):
            value = data[key]
            if is_markup(value):
                value = data[key] = rewrite_rich_text(value, table, policy=policy)
            if isinstance(key, str) and key.lower() == "id" and isinstance(value, str):
                new_id = table.resolve_by_id(value)
                if new_id:
                    data[key] = new_id
            elif isinstance(value, (dict, list)):
                rewrite_tree(value, table, policy=policy)
