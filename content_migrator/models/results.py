from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict

ActionType = Literal[
    "upload",
    "create",
    "fetch",
    "upsert",
    "skipUpdate",
    "publish",
    "archive",
    "changeWorkflowStep",
    "createNewVersion",
    "unArchive",
]

ItemType = Literal["binaryFile", "asset", "contentItem", "languageVariant"]


class ImportItemResult(BaseModel):
    """A single, immutable entry of the import ledger.

    ``import_id`` is the identifier of the entity in the target project,
    ``original_id`` / ``original_codename`` identify it in the source.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    action: ActionType
    item_type: ItemType
    title: str = ""
    imported: Any = None
    original: Any = None
    import_id: Optional[str] = None
    original_id: Optional[str] = None
    original_codename: Optional[str] = None
