"""
Loading of serialized export files.

This subpackage turns the JSON document written by the export side into
the :class:`~content_migrator.models.ImportSource` consumed by the import
tool: asset binaries are decoded or read from disk, mime types are guessed
when missing and every content item row is validated.
"""

from .import_source import load_import_source, parse_import_source

__all__ = ["load_import_source", "parse_import_source"]
