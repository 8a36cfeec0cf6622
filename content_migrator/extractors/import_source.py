import base64
import binascii
import json
import mimetypes
import os

from content_migrator.models import ImportAsset, ImportData, ImportMetadata, ImportSource, ParsedContentItem


def _read_binary(raw_asset, base_dir):
    """Return the binary payload of an exported asset.

    Exports carry binaries either inline, base64 encoded under ``binaryData``,
    or as a file next to the export referenced by ``binaryPath``.
    """
    path = raw_asset.get("binaryPath") or raw_asset.get("binary_path")
    if path:
        full_path = path if os.path.isabs(path) else os.path.join(base_dir, path)
        with open(full_path, "rb") as f:
            return f.read()

    data = raw_asset.get("binaryData", raw_asset.get("binary_data"))
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Asset '{raw_asset.get('assetId')}' has invalid base64 binary data") from e


def _parse_asset(raw_asset, base_dir):
    filename = raw_asset.get("filename") or raw_asset.get("fileName") or ""
    mime_type = raw_asset.get("mimeType") or raw_asset.get("mime_type") or mimetypes.guess_type(filename)[0]
    return ImportAsset(
        asset_id=raw_asset.get("assetId") or raw_asset.get("asset_id"),
        filename=filename,
        mime_type=mime_type,
        binary_data=_read_binary(raw_asset, base_dir),
    )


def parse_import_source(raw, base_dir="."):
    """Build an :class:`ImportSource` from a decoded export document.

    Args:
        raw (dict): The decoded JSON export with ``metadata`` and ``importData``.
        base_dir (str): Directory that relative ``binaryPath`` values refer to.

    Returns:
        ImportSource: The validated import source.

    Raises:
        ValueError: If an asset or content item row is malformed.
    """
    import_data = raw.get("importData") or raw.get("import_data") or {}
    assets = []
    for index, raw_asset in enumerate(import_data.get("assets") or []):
        try:
            assets.append(_parse_asset(raw_asset, base_dir))
        except ValueError as e:
            raise ValueError(f"Invalid asset at position {index}: {e}") from e

    items = []
    for index, raw_item in enumerate(import_data.get("items") or []):
        try:
            items.append(ParsedContentItem.model_validate(raw_item))
        except ValueError as e:
            raise ValueError(f"Invalid content item at position {index}: {e}") from e

    metadata = raw.get("metadata")
    return ImportSource(
        metadata=ImportMetadata.model_validate(metadata) if metadata else None,
        import_data=ImportData(assets=assets, items=items),
    )


def load_import_source(file_path):
    """Load an export file written by the export side.

    Args:
        file_path (str): Path to the JSON export document.

    Returns:
        ImportSource: The validated import source.

    Raises:
        FileNotFoundError: If the export file does not exist.
        ValueError: If the document is not valid JSON or a row is malformed.
    """
    with open(file_path, mode="r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Export file '{file_path}' is not valid JSON: {e}") from e
    return parse_import_source(raw, base_dir=os.path.dirname(os.path.abspath(file_path)))
