from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ParsedElement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    codename: str = Field(..., min_length=1)
    type: str
    value: Any = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class ParsedContentItem(BaseModel):
    """One serialized row: a content item in one language.

    Rows without a ``workflow_step`` are components embedded in rich text;
    they are never written on their own.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    codename: str = Field(..., min_length=1)
    name: str
    type: str
    collection: str = "default"
    language: str
    workflow_step: Optional[str] = Field(None, alias="workflowStep")
    elements: List[ParsedElement] = Field(default_factory=list)

    @field_validator("workflow_step", mode="before")
    @classmethod
    def _blank_step_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_component(self) -> bool:
        return not self.workflow_step


class ImportAsset(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    asset_id: str = Field(..., alias="assetId", min_length=1)
    filename: str = Field(..., min_length=1)
    mime_type: Optional[str] = Field(None, alias="mimeType")
    binary_data: bytes = Field(b"", alias="binaryData", repr=False)


class ImportMetadata(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    tool_version: Optional[str] = Field(None, alias="toolVersion")
    project_id: Optional[str] = Field(None, alias="projectId")
    timestamp: Optional[datetime] = None


class ImportData(BaseModel):
    assets: List[ImportAsset] = Field(default_factory=list)
    items: List[ParsedContentItem] = Field(default_factory=list)


class ImportSource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    metadata: Optional[ImportMetadata] = None
    import_data: ImportData = Field(default_factory=ImportData, alias="importData")
