"""
Management API client and import stages.

This subpackage provides the :class:`ManagementClient` used to talk to the
target project, with rate limiting and retries of transient failures, and
the three write stages run by the orchestrator in this order: assets,
content items, language variants.
"""

from .asset_importer import import_assets
from .content_item_importer import import_content_item
from .language_variant_importer import LanguageVariantImporter
from .management_client import ManagementClient, RateLimiter, RetryPolicy, with_retries

__all__ = [
    "LanguageVariantImporter",
    "ManagementClient",
    "RateLimiter",
    "RetryPolicy",
    "import_assets",
    "import_content_item",
    "with_retries",
]
