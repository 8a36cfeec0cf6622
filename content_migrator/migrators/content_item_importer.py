"""
Content item stage: makes sure every written item exists in the target.

Items are matched by codename.  A missing item is created with the source
name, type and collection; an existing one only has its name and
collection updated when they differ.  Element values are not touched here,
they belong to the language variant stage.
"""

from __future__ import annotations

from typing import Iterable, Optional

from content_migrator.core.ledger import ImportLedger
from content_migrator.models import Collection, ContentItem, ParsedContentItem
from content_migrator.utils.errors import InvalidCollectionError, NotFoundError


def find_collection(collections: Iterable[Collection], codename: str) -> Collection:
    for collection in collections:
        if collection.codename == codename:
            return collection
    raise InvalidCollectionError(f"Invalid collection '{codename}'")


def should_update_content_item(item: ParsedContentItem, existing: ContentItem, collections: Iterable[Collection]) -> bool:
    """Whether the name or the collection of ``existing`` differs from the source."""
    target = find_collection(collections, item.collection)
    if item.name != existing.name:
        return True
    current = existing.collection or {}
    if current.get("codename"):
        return current["codename"] != target.codename
    if current.get("id") and target.id:
        return current["id"] != target.id
    return False


def prepare_content_item(client, ledger: ImportLedger, item: ParsedContentItem) -> tuple:
    """Fetch the target item by codename, creating it when absent.

    Returns ``(content_item, created)``.
    """
    try:
        existing = client.view_content_item(item.codename)
    except NotFoundError:
        created = client.add_content_item(item.name, item.codename, item.type, item.collection)
        ledger.record(
            "create",
            "contentItem",
            title=created.name,
            imported=created,
            original=item,
            import_id=created.id,
            original_codename=item.codename,
        )
        return created, True

    ledger.record(
        "fetch",
        "contentItem",
        title=existing.name,
        imported=existing,
        original=item,
        import_id=existing.id,
        original_codename=item.codename,
    )
    return existing, False


def import_content_item(
    client, ledger: ImportLedger, item: ParsedContentItem, collections: Iterable[Collection]
) -> Optional[ContentItem]:
    """Create or match ``item``; component rows are ignored and return ``None``."""
    if item.is_component:
        return None

    content_item, created = prepare_content_item(client, ledger, item)
    if created:
        return content_item

    if should_update_content_item(item, content_item, collections):
        upserted = client.upsert_content_item(item.codename, item.name, item.collection)
        ledger.record(
            "upsert",
            "contentItem",
            title=item.name,
            imported=upserted,
            original=item,
            import_id=upserted.id,
            original_codename=item.codename,
        )
        return upserted

    ledger.record(
        "skipUpdate",
        "contentItem",
        title=item.name,
        imported=content_item,
        original=item,
        import_id=content_item.id,
        original_codename=item.codename,
    )
    return content_item
