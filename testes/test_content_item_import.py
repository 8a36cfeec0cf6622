import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from content_migrator.core.ledger import ImportLedger
from content_migrator.migrators.content_item_importer import import_content_item, should_update_content_item
from content_migrator.models import Collection, ContentItem, ParsedContentItem
from content_migrator.utils.errors import InvalidCollectionError


def row(codename="article", name="Article", collection="default", step="draft"):
    return ParsedContentItem(
        codename=codename, name=name, type="article", collection=collection, language="en", workflow_step=step
    )


def test_missing_item_is_created(fake_client):
    ledger = ImportLedger()
    item = import_content_item(fake_client, ledger, row(), fake_client.collections)

    assert fake_client.calls_named("add_content_item") == [("add_content_item", "article")]
    assert [r.action for r in ledger.results] == ["create"]
    assert ledger.table.resolve_by_codename("article") == item.id


def test_existing_item_with_same_name_and_collection_is_left_alone(fake_client):
    fake_client.items["article"] = ContentItem(id="t-1", name="Article", codename="article", collection={"id": "c-default"})
    ledger = ImportLedger()

    import_content_item(fake_client, ledger, row(), fake_client.collections)

    assert fake_client.calls_named("upsert_content_item") == []
    assert [r.action for r in ledger.results] == ["fetch", "skipUpdate"]
    assert ledger.table.resolve_by_codename("article") == "t-1"


@pytest.mark.parametrize("name, collection", [("Renamed", "default"), ("Article", "blog")])
def test_changed_name_or_collection_is_upserted(fake_client, name, collection):
    fake_client.items["article"] = ContentItem(id="t-1", name="Article", codename="article", collection={"id": "c-default"})
    ledger = ImportLedger()

    item = import_content_item(fake_client, ledger, row(name=name, collection=collection), fake_client.collections)

    assert fake_client.calls_named("upsert_content_item") == [("upsert_content_item", "article")]
    assert [r.action for r in ledger.results] == ["fetch", "upsert"]
    assert item.name == name


def test_component_rows_are_ignored(fake_client):
    ledger = ImportLedger()
    assert import_content_item(fake_client, ledger, row(step=None), fake_client.collections) is None
    assert fake_client.calls == []
    assert ledger.results == []


def test_unknown_collection_is_rejected():
    existing = ContentItem(id="t-1", name="Article", codename="article", collection={"id": "c-default"})
    with pytest.raises(InvalidCollectionError):
        should_update_content_item(row(collection="nope"), existing, [Collection(id="c-default", codename="default")])
