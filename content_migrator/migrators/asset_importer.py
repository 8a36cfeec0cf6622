"""
Asset import stage.

The source asset id doubles as the external id of the asset created in the
target.  An asset whose external id is already known to the target was
imported before (or the target *is* the source project) and is left
untouched; otherwise its binary is uploaded and a new asset record is
created.  Either way the source id ends up mapped to the target id in the
translation table.

Every failure in this stage is fatal: later stages reference assets from
rich text and asset elements.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from content_migrator.core.ledger import ImportLedger
from content_migrator.models import Asset, ImportAsset, ImportItemResult
from content_migrator.utils.errors import NotFoundError


def find_existing_asset(client, external_id: str) -> Optional[Asset]:
    """Return the target asset with ``external_id``, or ``None`` when absent."""
    try:
        return client.view_asset_by_external_id(external_id)
    except NotFoundError:
        return None


def import_asset(client, ledger: ImportLedger, asset: ImportAsset) -> None:
    external_id = asset.asset_id
    existing = find_existing_asset(client, external_id)

    if existing is not None:
        for action in ("fetch", "skipUpdate"):
            ledger.record(
                action,
                "asset",
                title=asset.filename,
                imported=existing,
                original=asset,
                import_id=existing.id,
                original_id=asset.asset_id,
            )
        return

    uploaded = client.upload_binary_file(asset.filename, asset.binary_data, asset.mime_type)
    ledger.record("upload", "binaryFile", title=asset.filename, imported=uploaded, original=asset)

    created = client.add_asset(uploaded.id, external_id=external_id, title=asset.filename)
    ledger.record(
        "create",
        "asset",
        title=asset.filename,
        imported=created,
        original=asset,
        import_id=created.id,
        original_id=asset.asset_id,
    )


def import_assets(client, ledger: ImportLedger, assets: Iterable[ImportAsset]) -> List[ImportItemResult]:
    """
    Import ``assets`` one by one, in order.

    :param client: Management API client of the target project.
    :param ledger: Ledger of the current run.
    :param assets: Source assets to import.
    :return: The ledger entries produced by this stage.
    """
    start = len(ledger.results)
    for asset in assets:
        import_asset(client, ledger, asset)
    return ledger.results[start:]
