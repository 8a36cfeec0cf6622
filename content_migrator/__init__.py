"""
Top-level package for the headless-CMS content import utility.

This package bundles all components required to replay an exported
content graph (assets, content items and their language variants) into
a target Kontent.ai project through the Management API, while keeping
cross-references valid and restoring each variant's workflow state.
Modules are split into subpackages:

* :mod:`content_migrator.extractors` – loading of serialized export files
* :mod:`content_migrator.parsers` – reference rewriting for rich text and
  element values
* :mod:`content_migrator.migrators` – Management API client and the asset,
  content item and language variant import stages
* :mod:`content_migrator.core` – translation table, result ledger and the
  workflow reconciler
* :mod:`content_migrator.utils` – error taxonomy, reporting and pre-flight
  checks

Orchestration lives in :mod:`content_migrator.import_tool`.
"""

__tool_name__ = "content-migrator"
__version__ = "0.1.0"
