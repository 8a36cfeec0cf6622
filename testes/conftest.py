import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from content_migrator.models import (
    Asset,
    Collection,
    ContentItem,
    LanguageVariant,
    ProjectInformation,
    UploadedFile,
    Workflow,
)
from content_migrator.utils.errors import ContentManagementError, NotFoundError
from content_migrator.utils.reporting import ImportObserver


def make_workflows():
    return [
        Workflow.model_validate(
            {
                "id": "wf-default",
                "codename": "default",
                "steps": [{"id": "s-draft", "codename": "draft"}, {"id": "s-review", "codename": "review"}],
                "published_step": {"id": "s-published", "codename": "published"},
                "archived_step": {"id": "s-archived", "codename": "archived"},
            }
        ),
        Workflow.model_validate(
            {
                "id": "wf-editorial",
                "codename": "editorial",
                "steps": [{"id": "e-writing", "codename": "writing"}],
                "published_step": {"id": "e-live", "codename": "live"},
                "archived_step": {"id": "e-retired", "codename": "retired"},
            }
        ),
    ]


class FakeManagementClient:
    """In-memory stand-in for the Management API.

    Published and archived variants reject element upserts, like the real
    API does, so an import that forgets a transition fails loudly.
    """

    def __init__(self, workflows=None, collections=None):
        self.project_id = "target-project"
        self.api_key = "secret"
        self.workflows = workflows if workflows is not None else make_workflows()
        self.collections = collections if collections is not None else [
            Collection(id="c-default", codename="default"),
            Collection(id="c-blog", codename="blog"),
        ]
        self.calls = []
        self.fail_on = {}
        self.assets = {}
        self.items = {}
        self.variants = {}
        self._counter = 0

    def _next_id(self, prefix):
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        failing = self.fail_on.get(name)
        if failing is not None and (not args or args[0] in failing):
            raise ContentManagementError(f"{name} failed for {args[0] if args else ''}", status_code=400)

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]

    def _workflow(self, codename):
        return next(w for w in self.workflows if w.codename == codename)

    def _collection_id(self, codename):
        collection = next((c for c in self.collections if c.codename == codename), None)
        if collection is None:
            raise ContentManagementError(f"Invalid collection '{codename}'", status_code=400)
        return collection.id

    def step_of(self, codename, language):
        """Return the codename of the step the variant currently sits in."""
        variant = self.variants[(codename, language)]
        workflow = self._workflow(variant["workflow"])
        for step in workflow.steps + [workflow.published_step, workflow.archived_step]:
            if step.id == variant["step_id"]:
                return step.codename
        raise AssertionError("variant in unknown step")

    def seed_variant(self, codename, language, *, workflow="default", step_id="s-draft", elements=None):
        self.variants[(codename, language)] = {"workflow": workflow, "step_id": step_id, "elements": elements or []}

    # -- project ------------------------------------------------------------

    def project_information(self):
        self._call("project_information")
        return ProjectInformation(id=self.project_id, name="Target", environment="Production")

    def list_workflows(self):
        self._call("list_workflows")
        return list(self.workflows)

    def list_collections(self):
        self._call("list_collections")
        return list(self.collections)

    # -- assets -------------------------------------------------------------

    def view_asset_by_external_id(self, external_id):
        self._call("view_asset_by_external_id", external_id)
        if external_id not in self.assets:
            raise NotFoundError("Asset not found", status_code=404)
        return self.assets[external_id]

    def upload_binary_file(self, filename, data, content_type=None):
        self._call("upload_binary_file", filename)
        return UploadedFile(id=self._next_id("file"))

    def add_asset(self, file_id, *, external_id=None, title=None):
        self._call("add_asset", external_id)
        asset = Asset(id=self._next_id("asset"), title=title, external_id=external_id)
        self.assets[external_id] = asset
        return asset

    # -- content items ------------------------------------------------------

    def view_content_item(self, codename):
        self._call("view_content_item", codename)
        if codename not in self.items:
            raise NotFoundError("Content item not found", status_code=404)
        return self.items[codename]

    def add_content_item(self, name, codename, type_codename, collection_codename):
        self._call("add_content_item", codename)
        item = ContentItem(
            id=self._next_id("item"),
            name=name,
            codename=codename,
            type={"codename": type_codename},
            collection={"id": self._collection_id(collection_codename)},
        )
        self.items[codename] = item
        return item

    def upsert_content_item(self, codename, name, collection_codename):
        self._call("upsert_content_item", codename)
        item = self.items[codename].model_copy(
            update={"name": name, "collection": {"id": self._collection_id(collection_codename)}}
        )
        self.items[codename] = item
        return item

    # -- language variants --------------------------------------------------

    def view_language_variant(self, item_codename, language_codename):
        self._call("view_language_variant", item_codename, language_codename)
        variant = self.variants.get((item_codename, language_codename))
        if variant is None:
            raise NotFoundError("Language variant not found", status_code=404)
        workflow = self._workflow(variant["workflow"])
        return LanguageVariant(
            item={"id": self.items[item_codename].id},
            language={"codename": language_codename},
            elements=variant["elements"],
            workflow={"workflow_identifier": {"id": workflow.id}, "step_identifier": {"id": variant["step_id"]}},
        )

    def upsert_language_variant(self, item_codename, language_codename, elements):
        self._call("upsert_language_variant", item_codename, language_codename)
        key = (item_codename, language_codename)
        variant = self.variants.get(key)
        if variant is None:
            variant = self.variants[key] = {"workflow": "default", "step_id": "s-draft", "elements": []}
        workflow = self._workflow(variant["workflow"])
        if variant["step_id"] in (workflow.published_step.id, workflow.archived_step.id):
            raise ContentManagementError("Published or archived variants cannot be edited", status_code=400)
        variant["elements"] = elements
        return LanguageVariant(elements=elements)

    def publish_language_variant(self, item_codename, language_codename):
        self._call("publish_language_variant", item_codename, language_codename)
        variant = self.variants[(item_codename, language_codename)]
        workflow = self._workflow(variant["workflow"])
        if variant["step_id"] == workflow.archived_step.id:
            raise ContentManagementError("Archived variants cannot be published", status_code=400)
        variant["step_id"] = workflow.published_step.id

    def create_new_version(self, item_codename, language_codename):
        self._call("create_new_version", item_codename, language_codename)
        variant = self.variants[(item_codename, language_codename)]
        workflow = self._workflow(variant["workflow"])
        if variant["step_id"] != workflow.published_step.id:
            raise ContentManagementError("Only published variants can get a new version", status_code=400)
        variant["step_id"] = workflow.steps[0].id

    def change_workflow_of_language_variant(self, item_codename, language_codename, *, workflow_codename, step_codename):
        self._call("change_workflow_of_language_variant", item_codename, language_codename, step_codename)
        variant = self.variants[(item_codename, language_codename)]
        workflow = self._workflow(workflow_codename)
        for step in workflow.steps + [workflow.archived_step]:
            if step.codename == step_codename:
                variant["workflow"] = workflow.codename
                variant["step_id"] = step.id
                return
        raise ContentManagementError(f"Unknown step '{step_codename}'", status_code=400)


class RecordingObserver(ImportObserver):
    def __init__(self):
        self.messages = []
        self.events = []
        self.failures = []

    def on_message(self, message, level="INFO"):
        self.messages.append((level, message))

    def on_asset_imported(self, result):
        self.events.append(result)

    def on_content_item_imported(self, result):
        self.events.append(result)

    def on_variant_transition(self, result):
        self.events.append(result)

    def on_item_failed(self, item, exc, *, stage):
        self.failures.append((stage, item.codename, exc))


@pytest.fixture
def workflows():
    return make_workflows()


@pytest.fixture
def fake_client():
    return FakeManagementClient()


@pytest.fixture
def observer():
    return RecordingObserver()
