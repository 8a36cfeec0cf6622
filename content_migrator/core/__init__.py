"""
State kept for the duration of one import run.

* :class:`TranslationTable` – source id/codename to target id mappings
* :class:`ImportLedger` – the append-only result ledger feeding the table
* :class:`WorkflowReconciler` – decides which workflow transitions bring a
  language variant into its recorded state
"""

from .ledger import ImportLedger
from .translation import TranslationEntry, TranslationTable
from .workflow import Transition, TransitionPlan, VariantState, WorkflowReconciler

__all__ = [
    "ImportLedger",
    "Transition",
    "TransitionPlan",
    "TranslationEntry",
    "TranslationTable",
    "VariantState",
    "WorkflowReconciler",
]
