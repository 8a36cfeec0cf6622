import base64
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from conftest import FakeManagementClient, RecordingObserver, make_workflows
from content_migrator import __version__
from content_migrator.core.ledger import ImportLedger
from content_migrator.core.workflow import WorkflowReconciler
from content_migrator.extractors.import_source import parse_import_source
from content_migrator.import_tool import ContentImportTool
from content_migrator.migrators.language_variant_importer import LanguageVariantImporter
from content_migrator.parsers.element_values import ElementValueTranslator, component_id
from content_migrator.utils.errors import (
    ContentManagementError,
    ImportAbortedError,
    MissingDefaultWorkflowError,
)

HERO_BODY = (
    '<p>Intro</p>'
    '<object type="application/kenticocloud" data-type="component" data-codename="cta"></object>'
    '<figure data-asset-id="src-logo"></figure>'
    '<p><a data-codename="about">About us</a></p>'
)


def export(version=__version__, hero_step="published", about_step="draft"):
    return parse_import_source(
        {
            "metadata": {"toolVersion": version, "projectId": "source-project"},
            "importData": {
                "assets": [
                    {
                        "assetId": "src-logo",
                        "filename": "logo.png",
                        "binaryData": base64.b64encode(b"\x89PNG").decode("ascii"),
                    }
                ],
                "items": [
                    {
                        "codename": "hero",
                        "name": "Hero",
                        "type": "article",
                        "language": "en",
                        "workflowStep": hero_step,
                        "elements": [
                            {"codename": "body", "type": "rich_text", "value": HERO_BODY},
                            {"codename": "image", "type": "asset", "value": [{"id": "src-logo"}]},
                            {"codename": "related", "type": "modular_content", "value": ["about"]},
                        ],
                    },
                    {
                        "codename": "cta",
                        "name": "Call to action",
                        "type": "cta",
                        "language": "en",
                        "workflowStep": "",
                        "elements": [{"codename": "label", "type": "text", "value": "Sign up"}],
                    },
                    {
                        "codename": "about",
                        "name": "About",
                        "type": "page",
                        "collection": "blog",
                        "language": "en",
                        "workflowStep": about_step,
                        "elements": [{"codename": "title", "type": "text", "value": "About us"}],
                    },
                ],
            },
        }
    )


def make_tool(client, observer=None, **kwargs):
    return ContentImportTool(config={}, client=client, observer=observer or RecordingObserver(), **kwargs)


def elements_of(client, codename, language="en"):
    return {e["element"]["codename"]: e for e in client.variants[(codename, language)]["elements"]}


def test_full_import_creates_everything_and_rewrites_references(fake_client, observer):
    tool = make_tool(fake_client, observer)
    results = tool.import_source(export())

    logo_id = fake_client.assets["src-logo"].id
    about_id = fake_client.items["about"].id

    hero = elements_of(fake_client, "hero")
    body = hero["body"]["value"]
    assert f'data-id="{component_id("cta")}"' in body
    assert f'data-asset-id="{logo_id}"' in body
    assert f'data-id="{about_id}"' in body
    assert "data-codename" not in body
    assert hero["body"]["components"][0]["id"] == component_id("cta")
    assert hero["body"]["components"][0]["elements"] == [{"element": {"codename": "label"}, "value": "Sign up"}]
    assert hero["image"]["value"] == [{"id": logo_id}]
    assert hero["related"]["value"] == [{"id": about_id}]

    assert fake_client.step_of("hero", "en") == "published"
    assert fake_client.step_of("about", "en") == "draft"

    # components are only written inside the rich text that embeds them
    assert ("add_content_item", "cta") not in fake_client.calls
    assert all(c[1] != "cta" for c in fake_client.calls_named("upsert_language_variant"))
    assert all(r.original_codename != "cta" for r in results)
    assert tool.results is results


def test_variants_are_written_after_every_item_exists(fake_client):
    make_tool(fake_client).import_source(export())

    names = [c[0] for c in fake_client.calls]
    last_item_call = max(i for i, n in enumerate(names) if n == "add_content_item")
    first_variant_call = names.index("upsert_language_variant")
    assert last_item_call < first_variant_call


def test_reimport_is_idempotent(fake_client):
    make_tool(fake_client).import_source(export())
    first_hero = elements_of(fake_client, "hero")
    fake_client.calls.clear()

    results = make_tool(fake_client).import_source(export())

    assert fake_client.calls_named("upload_binary_file") == []
    assert fake_client.calls_named("add_asset") == []
    assert fake_client.calls_named("add_content_item") == []
    assert fake_client.calls_named("upsert_content_item") == []
    assert fake_client.step_of("hero", "en") == "published"
    assert fake_client.step_of("about", "en") == "draft"
    assert elements_of(fake_client, "hero") == first_hero
    hero_actions = [r.action for r in results if r.item_type == "languageVariant" and r.original_codename == "hero"]
    assert hero_actions == ["createNewVersion", "upsert", "publish"]


def test_archived_variant_is_restored_before_upsert(fake_client):
    fake_client.seed_variant("hero", "en", step_id="s-archived")
    fake_client.add_content_item("Hero", "hero", "article", "default")
    fake_client.calls.clear()

    make_tool(fake_client).import_source(export())

    writes = {"change_workflow_of_language_variant", "upsert_language_variant", "publish_language_variant"}
    hero_calls = [c[0] for c in fake_client.calls if c[0] in writes and c[1] == "hero"]
    assert hero_calls == ["change_workflow_of_language_variant", "upsert_language_variant", "publish_language_variant"]
    assert fake_client.calls_named("change_workflow_of_language_variant")[0][-1] == "draft"
    assert fake_client.step_of("hero", "en") == "published"


def test_archived_variant_that_stays_archived_is_not_touched(fake_client):
    fake_client.seed_variant("hero", "en", step_id="s-archived", elements=[{"element": {"codename": "body"}, "value": "old"}])
    fake_client.add_content_item("Hero", "hero", "article", "default")

    results = make_tool(fake_client).import_source(export(hero_step="archived"))

    assert all(c[1] != "hero" for c in fake_client.calls_named("upsert_language_variant"))
    assert fake_client.variants[("hero", "en")]["elements"] == [{"element": {"codename": "body"}, "value": "old"}]
    hero_actions = [r.action for r in results if r.item_type == "languageVariant" and r.original_codename == "hero"]
    assert hero_actions == ["skipUpdate"]


def test_filters_exclude_assets_and_items(fake_client):
    source = export()
    tool = make_tool(
        fake_client,
        can_import_asset=lambda asset: False,
        can_import_content_item=lambda item: item.codename != "about",
    )

    tool.import_source(source)

    assert tool.removed_assets == 1
    assert tool.removed_content_items == 1
    assert fake_client.calls_named("upload_binary_file") == []
    assert "about" not in fake_client.items
    # the source itself is left as loaded
    assert len(source.import_data.items) == 3
    # the asset was never imported, so its marker keeps the source id
    assert 'data-asset-id="src-logo"' in elements_of(fake_client, "hero")["body"]["value"]


def test_failure_aborts_with_partial_results(fake_client):
    fake_client.fail_on["upsert_language_variant"] = {"hero"}

    with pytest.raises(ImportAbortedError) as exc_info:
        make_tool(fake_client).import_source(export())

    error = exc_info.value
    assert isinstance(error.cause, ContentManagementError)
    assert ("asset", "create") in [(r.item_type, r.action) for r in error.results]
    assert ("about", "en") not in fake_client.variants


def test_skip_failed_items_continues_with_the_next_row(observer):
    client = FakeManagementClient()
    client.fail_on["upsert_language_variant"] = {"hero"}
    tool = ContentImportTool(config={"import": {"skip_failed_items": True}}, client=client, observer=observer)

    tool.import_source(export())

    assert [(stage, codename) for stage, codename, _ in observer.failures] == [("language variant", "hero")]
    assert client.step_of("about", "en") == "draft"
    assert any(level == "ERROR" and "hero" in message for level, message in observer.messages)


def test_failed_content_item_skips_its_variant(observer):
    client = FakeManagementClient()
    client.fail_on["add_content_item"] = {"about"}
    tool = ContentImportTool(config={"import": {"skip_failed_items": True}}, client=client, observer=observer)

    tool.import_source(export())

    stages = [(stage, codename) for stage, codename, _ in observer.failures]
    assert stages == [("content item", "about")]
    assert ("about", "en") not in client.variants
    # the reference to the failed item falls back to the placeholder
    assert 'data-id="00000000-0000-0000-0000-000000000000"' in elements_of(client, "hero")["body"]["value"]


def test_missing_default_workflow_aborts_even_when_skipping(observer):
    client = FakeManagementClient(workflows=[make_workflows()[1]])
    tool = ContentImportTool(config={"import": {"skip_failed_items": True}}, client=client, observer=observer)

    with pytest.raises(ImportAbortedError) as exc_info:
        tool.import_source(export(hero_step="draft"))

    assert isinstance(exc_info.value.cause, MissingDefaultWorkflowError)
    assert observer.failures == []


def test_version_mismatch_only_warns(fake_client, observer):
    make_tool(fake_client, observer).import_source(export(version="0.0.1"))

    warnings = [message for level, message in observer.messages if level == "WARNING"]
    assert warnings and "0.0.1" in warnings[0]
    assert fake_client.step_of("hero", "en") == "published"


def test_pre_flight_failure_aborts_before_any_write(fake_client):
    fake_client.api_key = ""

    with pytest.raises(ImportAbortedError):
        make_tool(fake_client).import_source(export())

    assert fake_client.calls == []


def test_unknown_collection_is_a_per_item_failure(observer):
    source = export()
    source.import_data.items[2] = source.import_data.items[2].model_copy(update={"collection": "missing"})
    client = FakeManagementClient()
    client.add_content_item("About", "about", "page", "blog")
    tool = ContentImportTool(config={"import": {"skip_failed_items": True}}, client=client, observer=observer)

    tool.import_source(source)

    assert [(stage, codename) for stage, codename, _ in observer.failures] == [("content item", "about")]
    assert client.step_of("hero", "en") == "published"


def test_unknown_element_type_aborts_even_when_skipping(observer):
    source = parse_import_source(
        {
            "importData": {
                "items": [
                    {
                        "codename": "hero",
                        "name": "Hero",
                        "type": "article",
                        "language": "en",
                        "workflowStep": "draft",
                        "elements": [{"codename": "map", "type": "geo_point", "value": [1, 2]}],
                    }
                ]
            }
        }
    )
    client = FakeManagementClient()
    tool = ContentImportTool(config={"import": {"skip_failed_items": True}}, client=client, observer=observer)

    with pytest.raises(ImportAbortedError) as exc_info:
        tool.import_source(source)

    assert "geo_point" in str(exc_info.value.cause)
    assert client.calls_named("upsert_language_variant") == []


def test_item_failure_is_reported_once_for_all_its_languages(observer):
    source = export()
    about = source.import_data.items[2]
    source.import_data.items.append(about.model_copy(update={"language": "de"}))
    client = FakeManagementClient()
    client.fail_on["add_content_item"] = {"about"}
    tool = ContentImportTool(config={"import": {"skip_failed_items": True}}, client=client, observer=observer)

    tool.import_source(source)

    assert client.calls_named("add_content_item") == [("add_content_item", "hero"), ("add_content_item", "about")]
    assert [(stage, codename) for stage, codename, _ in observer.failures] == [("content item", "about")]
    assert not any(key[0] == "about" for key in client.variants)
    assert client.step_of("hero", "en") == "published"


def test_existing_variant_lookup_records_a_fetch(fake_client, workflows):
    row = export().import_data.items[0]
    fake_client.add_content_item("Hero", "hero", "article", "default")
    fake_client.seed_variant("hero", "en", step_id="s-review")
    ledger = ImportLedger()
    importer = LanguageVariantImporter(fake_client, ledger, WorkflowReconciler(workflows), ElementValueTranslator(ledger.table))

    variant = importer.find_existing_variant(row)

    assert variant.workflow_step_id == "s-review"
    assert [(r.action, r.item_type) for r in ledger.results] == [("fetch", "languageVariant")]
    assert importer.find_existing_variant(row.model_copy(update={"language": "de"})) is None
