"""
Workflow reconciliation for language variants.

A language variant in the target is in one of four states relative to the
workflows the target project defines: it does not exist yet, it sits in a
draft (or custom) step, it is published, or it is archived.  The source
variant records the step it should end up in.  :class:`WorkflowReconciler`
classifies both sides and produces a :class:`TransitionPlan`: the
operations to run before the elements are upserted, whether the upsert
happens at all, and the operations to run afterwards.

==========  ===========================  ==========================  ===========================
current     desired published            desired archived            desired other step
==========  ===========================  ==========================  ===========================
absent      upsert, publish              upsert, archive             upsert, change step
draft       upsert, publish              upsert, archive             upsert, change step
published   new version, upsert, publish new version, upsert,        new version, upsert,
                                         archive                     change step
archived    un-archive, upsert, publish  nothing                     un-archive, upsert,
                                                                     change step
==========  ===========================  ==========================  ===========================

Published variants cannot be edited, hence the new version.  Archived
variants cannot be edited or published directly, hence the move back to
the first step of their workflow.

Steps are matched against every workflow of the project, in order: the
archived step, the published step and then the intermediate steps of each
workflow.  The first workflow with a match wins.  When no workflow knows
the step, the project's default workflow is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from content_migrator.models import Workflow, WorkflowStep
from content_migrator.utils.errors import ConfigurationError, MissingDefaultWorkflowError

DEFAULT_WORKFLOW_CODENAME = "default"


class VariantState(str, Enum):
    ABSENT = "absent"
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class Transition:
    action: str
    workflow: Workflow
    step: Optional[WorkflowStep] = None

    @property
    def step_codename(self) -> Optional[str]:
        return self.step.codename if self.step is not None else None


@dataclass(frozen=True)
class TransitionPlan:
    current: VariantState
    desired: VariantState
    before_upsert: Tuple[Transition, ...] = ()
    upsert: bool = True
    after_upsert: Tuple[Transition, ...] = ()

    @property
    def transitions(self) -> Tuple[Transition, ...]:
        return self.before_upsert + self.after_upsert


class WorkflowReconciler:
    def __init__(self, workflows: Iterable[Workflow], *, default_workflow_codename: str = DEFAULT_WORKFLOW_CODENAME) -> None:
        self.workflows: List[Workflow] = list(workflows)
        self.default_workflow_codename = default_workflow_codename

    # -- lookup -------------------------------------------------------------

    def _match(self, key: Callable[[WorkflowStep], Optional[str]], value: str) -> Optional[Tuple[Workflow, VariantState, WorkflowStep]]:
        for workflow in self.workflows:
            if key(workflow.archived_step) == value:
                return workflow, VariantState.ARCHIVED, workflow.archived_step
            if key(workflow.published_step) == value:
                return workflow, VariantState.PUBLISHED, workflow.published_step
            for step in workflow.steps:
                if key(step) == value:
                    return workflow, VariantState.DRAFT, step
        return None

    def default_workflow(self) -> Workflow:
        wanted = self.default_workflow_codename.lower()
        for workflow in self.workflows:
            if workflow.codename.lower() == wanted:
                return workflow
        raise MissingDefaultWorkflowError(
            f"Missing default workflow '{self.default_workflow_codename}' in target project"
        )

    def workflow_for_step_codename(self, codename: str) -> Workflow:
        match = self._match(lambda s: s.codename, codename)
        return match[0] if match else self.default_workflow()

    def workflow_for_step_id(self, step_id: str) -> Workflow:
        match = self._match(lambda s: s.id, step_id)
        return match[0] if match else self.default_workflow()

    # -- classification -----------------------------------------------------

    def classify_step_codename(self, codename: str) -> VariantState:
        match = self._match(lambda s: s.codename, codename)
        return match[1] if match else VariantState.DRAFT

    def classify_step_id(self, step_id: Optional[str], *, exists: bool = True) -> VariantState:
        if not exists:
            return VariantState.ABSENT
        if not step_id:
            return VariantState.DRAFT
        match = self._match(lambda s: s.id, step_id)
        return match[1] if match else VariantState.DRAFT

    # -- planning -----------------------------------------------------------

    def plan(self, desired_step_codename: str, *, exists: bool, current_step_id: Optional[str] = None) -> TransitionPlan:
        current = self.classify_step_id(current_step_id, exists=exists)
        desired = self.classify_step_codename(desired_step_codename)

        before: List[Transition] = []
        if current is VariantState.PUBLISHED:
            before.append(Transition("createNewVersion", self.workflow_for_step_id(current_step_id)))
        elif current is VariantState.ARCHIVED:
            if desired is VariantState.ARCHIVED:
                return TransitionPlan(current, desired, upsert=False)
            workflow = self.workflow_for_step_id(current_step_id)
            if not workflow.steps:
                raise ConfigurationError(f"Workflow '{workflow.codename}' has no step to restore archived variants to")
            before.append(Transition("unArchive", workflow, workflow.steps[0]))

        target = self.workflow_for_step_codename(desired_step_codename)
        if desired is VariantState.PUBLISHED:
            after = Transition("publish", target, target.published_step)
        elif desired is VariantState.ARCHIVED:
            after = Transition("archive", target, target.archived_step)
        else:
            step = next((s for s in target.steps if s.codename == desired_step_codename), None)
            after = Transition("changeWorkflowStep", target, step or WorkflowStep(codename=desired_step_codename))

        return TransitionPlan(current, desired, tuple(before), True, (after,))
