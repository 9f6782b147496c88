"""
Metadata documents for minted records.

Takes what CollectibleRegistry.describe() exposes plus the owner's display
name and renders the JSON document wallets and marketplaces expect.
"""
from __future__ import annotations

import base64
import json
from typing import Any, Dict

from .collectibles import RecordDescription

COLLECTION_NAME = "Raffle Pups"
RECORD_DESCRIPTION = "An adorable puppy, won in the raffle by {owner}!"
DATA_URI_PREFIX = "data:application/json;base64,"


def render_document(
    description: RecordDescription, owner_display_name: str
) -> Dict[str, Any]:
    return {
        "name": f"{COLLECTION_NAME} #{description.record_id}: {description.name}",
        "description": RECORD_DESCRIPTION.format(owner=owner_display_name),
        "attributes": [
            {"trait_type": "rarity", "value": int(description.rarity)},
        ],
        "image": description.asset_uri,
    }


def to_data_uri(document: Dict[str, Any]) -> str:
    # Sorted keys so the same record always yields the same URI
    raw = json.dumps(document, sort_keys=True, separators=(",", ":"))
    return DATA_URI_PREFIX + base64.b64encode(raw.encode("utf-8")).decode("ascii")


def from_data_uri(uri: str) -> Dict[str, Any]:
    if not uri.startswith(DATA_URI_PREFIX):
        raise RuntimeError(f"Not a JSON data URI: {uri[:40]}...")
    raw = base64.b64decode(uri[len(DATA_URI_PREFIX):])
    return json.loads(raw.decode("utf-8"))
