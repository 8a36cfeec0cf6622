"""
Entities returned by the target project's Management API.

Only the fields the import pipeline reads are declared; everything else
returned by the API is kept through ``extra="allow"``.  Field names follow
the API's snake_case payloads, camelCase aliases are accepted as well.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkflowStep(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    codename: str
    name: Optional[str] = None


class Workflow(BaseModel):
    """A workflow of the target project.

    ``steps`` holds the intermediate steps only; the published and archived
    steps are exposed separately.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    codename: str
    name: Optional[str] = None
    steps: List[WorkflowStep] = Field(default_factory=list)
    published_step: WorkflowStep = Field(..., alias="publishedStep")
    archived_step: WorkflowStep = Field(..., alias="archivedStep")


class Collection(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    codename: str
    name: Optional[str] = None


class ProjectInformation(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str = ""
    environment: Optional[str] = None


class UploadedFile(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "internal"


class Asset(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    file_name: Optional[str] = Field(None, alias="fileName")
    title: Optional[str] = None
    external_id: Optional[str] = Field(None, alias="externalId")


class ContentItem(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    name: str
    codename: str
    type: Dict[str, Any] = Field(default_factory=dict)
    collection: Dict[str, Any] = Field(default_factory=dict)
    external_id: Optional[str] = Field(None, alias="externalId")


class LanguageVariant(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    item: Dict[str, Any] = Field(default_factory=dict)
    language: Dict[str, Any] = Field(default_factory=dict)
    elements: List[Dict[str, Any]] = Field(default_factory=list)
    workflow_step: Optional[Dict[str, Any]] = Field(None, alias="workflowStep")
    workflow: Optional[Dict[str, Any]] = None

    @property
    def workflow_step_id(self) -> Optional[str]:
        # newer payloads nest the step under "workflow"
        if self.workflow:
            step = self.workflow.get("step_identifier") or {}
            if step.get("id"):
                return step["id"]
        return (self.workflow_step or {}).get("id")
