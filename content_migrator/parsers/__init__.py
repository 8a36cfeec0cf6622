"""
Reference rewriting used by the language variant stage.

This subpackage exposes ``rewrite_rich_text`` and ``rewrite_tree`` from
:mod:`content_migrator.parsers.rich_text` and the typed
``ElementValueTranslator`` from :mod:`content_migrator.parsers.element_values`.
"""

from .element_values import ElementValueTranslator
from .rich_text import PLACEHOLDER_ID, UnresolvedCodenamePolicy, rewrite_rich_text, rewrite_tree

__all__ = [
    "ElementValueTranslator",
    "PLACEHOLDER_ID",
    "UnresolvedCodenamePolicy",
    "rewrite_rich_text",
    "rewrite_tree",
]
