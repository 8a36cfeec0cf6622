"""
Language variant stage: writes element values and restores workflow state.

For each source row the current variant is looked up in the target, the
:class:`~content_migrator.core.workflow.WorkflowReconciler` plans the
transitions, and the plan is executed around the element upsert.
"""

from __future__ import annotations

from typing import Optional

from content_migrator.core.ledger import ImportLedger
from content_migrator.core.workflow import Transition, TransitionPlan, WorkflowReconciler
from content_migrator.models import ContentItem, LanguageVariant, ParsedContentItem
from content_migrator.parsers.element_values import ElementValueTranslator
from content_migrator.utils.errors import NotFoundError


class LanguageVariantImporter:
    def __init__(
        self,
        client,
        ledger: ImportLedger,
        reconciler: WorkflowReconciler,
        translator: ElementValueTranslator,
    ) -> None:
        self.client = client
        self.ledger = ledger
        self.reconciler = reconciler
        self.translator = translator

    def find_existing_variant(self, item: ParsedContentItem) -> Optional[LanguageVariant]:
        try:
            variant = self.client.view_language_variant(item.codename, item.language)
        except NotFoundError:
            return None
        self.ledger.record(
            "fetch",
            "languageVariant",
            title=f"{item.name} | {item.language}",
            imported=variant,
            original=item,
        )
        return variant

    def import_language_variant(self, item: ParsedContentItem, content_item: ContentItem) -> TransitionPlan:
        existing = self.find_existing_variant(item)
        plan = self.reconciler.plan(
            item.workflow_step,
            exists=existing is not None,
            current_step_id=existing.workflow_step_id if existing is not None else None,
        )

        for transition in plan.before_upsert:
            self._apply(transition, item, content_item)

        if not plan.upsert:
            self.ledger.record(
                "skipUpdate",
                "languageVariant",
                title=f"{content_item.name} | {item.language} | {item.workflow_step}",
                imported=existing,
                original=item,
                import_id=content_item.id,
                original_codename=item.codename,
            )
            return plan

        # resolved only now so that every item of the run is already in the table
        elements = self.translator.translate_elements(item.elements, language=item.language)
        upserted = self.client.upsert_language_variant(item.codename, item.language, elements)
        self.ledger.record(
            "upsert",
            "languageVariant",
            title=f"{content_item.name} | {item.language}",
            imported=upserted,
            original=item,
            import_id=content_item.id,
            original_codename=item.codename,
        )

        for transition in plan.after_upsert:
            self._apply(transition, item, content_item)
        return plan

    def _apply(self, transition: Transition, item: ParsedContentItem, content_item: ContentItem) -> None:
        if transition.action == "createNewVersion":
            self.client.create_new_version(item.codename, item.language)
        elif transition.action == "publish":
            self.client.publish_language_variant(item.codename, item.language)
        else:
            self.client.change_workflow_of_language_variant(
                item.codename,
                item.language,
                workflow_codename=transition.workflow.codename,
                step_codename=transition.step_codename,
            )

        title = f"{content_item.name} | {item.language}"
        if transition.step_codename:
            title = f"{title} | {transition.step_codename}"
        self.ledger.record(
            transition.action,
            "languageVariant",
            title=title,
            original=item,
            import_id=content_item.id,
            original_codename=item.codename,
        )
