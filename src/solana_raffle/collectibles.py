from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List

from .errors import UnknownRecord

log = logging.getLogger(__name__)


class Rarity(IntEnum):
    """Tier values are the tier weights out of 100."""

    COMMON = 70
    RARE = 25
    LEGENDARY = 5


ASSET_BY_TIER: Dict[Rarity, str] = {
    Rarity.COMMON: "ipfs://QmSsYRx3LpDAb1GZQm7zZ1AuHZjfbPkD6J7s9r41xu1mf8",
    Rarity.RARE: "ipfs://QmUPjADFGEKmfohdTaNcWhp7VGk26h5jXDA7v3VtTnTLnW",
    Rarity.LEGENDARY: "ipfs://QmYx6GsYAKnNzZ9A6NvEKV9nf1VaDzJrqDR23Y8YSkebLU",
}

NAME_BY_TIER: Dict[Rarity, str] = {
    Rarity.COMMON: "pug",
    Rarity.RARE: "shiba inu",
    Rarity.LEGENDARY: "st. bernard",
}


@dataclass(frozen=True)
class RecordDescription:
    record_id: int
    rarity: Rarity
    name: str
    asset_uri: str


class CollectibleRegistry:
    def __init__(self) -> None:
        self.asset_by_tier = dict(ASSET_BY_TIER)
        self.name_by_tier = dict(NAME_BY_TIER)
        self._tier_by_id: Dict[int, Rarity] = {}
        self._owner_by_id: Dict[int, str] = {}

    @property
    def total_supply(self) -> int:
        return len(self._tier_by_id)

    def mint(self, owner: str, rarity: Rarity) -> int:
        record_id = self.total_supply
        self._tier_by_id[record_id] = Rarity(rarity)
        self._owner_by_id[record_id] = owner
        log.info("Minted record #%d (%s) to %s", record_id, Rarity(rarity).name, owner)
        return record_id

    def tier_of(self, record_id: int) -> Rarity:
        if record_id not in self._tier_by_id:
            raise UnknownRecord(record_id)
        return self._tier_by_id[record_id]

    def owner_of(self, record_id: int) -> str:
        if record_id not in self._owner_by_id:
            raise UnknownRecord(record_id)
        return self._owner_by_id[record_id]

    def records_of(self, owner: str) -> List[int]:
        return [rid for rid, o in self._owner_by_id.items() if o == owner]

    def describe(self, record_id: int) -> RecordDescription:
        rarity = self.tier_of(record_id)
        return RecordDescription(
            record_id=record_id,
            rarity=rarity,
            name=self.name_by_tier[rarity],
            asset_uri=self.asset_by_tier[rarity],
        )
