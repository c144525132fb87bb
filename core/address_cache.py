"""
ARP cache: logical address to hardware address mappings learned by the
simulation.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class CacheEntry:
    """Entry in the simulated ARP cache."""
    address: str
    hardware_id: str
    last_updated: datetime = field(default_factory=datetime.now)
    display_name: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'address': self.address,
            'hardware_id': self.hardware_id,
            'last_updated': self.last_updated.isoformat(),
            'display_name': self.display_name,
        }


class AddressCache:
    """
    Address -> hardware id table.

    Keyed by address: writing an address again replaces its entry and moves
    it to the end, so entries() is always in last-write order. The table is
    unbounded and only emptied by clear().
    """

    def __init__(self):
        self._entries: 'OrderedDict[str, CacheEntry]' = OrderedDict()

    def upsert(self, address: str, hardware_id: str,
               display_name: Optional[str] = None) -> CacheEntry:
        """Add or replace the entry for an address."""
        entry = CacheEntry(
            address=address,
            hardware_id=hardware_id,
            display_name=display_name
        )
        self._entries.pop(address, None)
        self._entries[address] = entry
        return entry

    def get(self, address: str) -> Optional[CacheEntry]:
        return self._entries.get(address)

    def entries(self) -> List[CacheEntry]:
        """All entries, oldest write first."""
        return list(self._entries.values())

    def as_mapping(self) -> Dict[str, str]:
        """Plain address -> hardware id view."""
        return {address: entry.hardware_id for address, entry in self._entries.items()}

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: str) -> bool:
        return address in self._entries
