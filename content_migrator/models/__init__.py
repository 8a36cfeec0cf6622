"""
Pydantic models shared by the import pipeline.

:mod:`.import_models` describes the serialized source (what gets
imported), :mod:`.project` the entities returned by the target project
and :mod:`.results` the ledger entries produced by an import run.
"""

from .import_models import ImportAsset, ImportData, ImportMetadata, ImportSource, ParsedContentItem, ParsedElement
from .project import (
    Asset,
    Collection,
    ContentItem,
    LanguageVariant,
    ProjectInformation,
    UploadedFile,
    Workflow,
    WorkflowStep,
)
from .results import ImportItemResult

__all__ = [
    "Asset",
    "Collection",
    "ContentItem",
    "ImportAsset",
    "ImportData",
    "ImportItemResult",
    "ImportMetadata",
    "ImportSource",
    "LanguageVariant",
    "ParsedContentItem",
    "ParsedElement",
    "ProjectInformation",
    "UploadedFile",
    "Workflow",
    "WorkflowStep",
]
