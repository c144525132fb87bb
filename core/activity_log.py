"""
Activity Log for the ARP/RARP Simulator

Append-only record of protocol events produced while a simulation runs.
Consumers normally look only at the most recent entries, newest first.
"""

import csv
import itertools
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from config import settings

logger = logging.getLogger(__name__)


class ActivityKind(Enum):
    """Kinds of recorded protocol events"""
    ARP_REQUEST = "ARP_REQUEST"
    ARP_REPLY = "ARP_REPLY"
    RARP_REQUEST = "RARP_REQUEST"
    RARP_REPLY = "RARP_REPLY"
    CACHE_UPDATE = "CACHE_UPDATE"
    DEVICE_UPDATE = "DEVICE_UPDATE"


@dataclass(frozen=True)
class ActivityEntry:
    """A single logged protocol event"""
    id: str
    kind: ActivityKind
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    source_ip: Optional[str] = None
    source_mac: Optional[str] = None
    target_ip: Optional[str] = None
    target_mac: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'kind': self.kind.value,
            'message': self.message,
            'source_ip': self.source_ip,
            'source_mac': self.source_mac,
            'target_ip': self.target_ip,
            'target_mac': self.target_mac,
        }


class ActivityRecorder:
    """
    Records protocol activity during a simulation

    Usage:
        recorder = ActivityRecorder()
        recorder.record(ActivityKind.ARP_REQUEST, "Alpha asks for 10.0.0.2",
                        source_ip="10.0.0.1")

        for entry in recorder.recent():
            print(entry.message)
    """

    def __init__(self, view_size: int = settings.ACTIVITY_VIEW_SIZE):
        self.view_size = view_size
        self._entries: List[ActivityEntry] = []
        self._ids = itertools.count(1)

    def next_id(self) -> str:
        return f"activity-{next(self._ids)}"

    def append(self, entry: ActivityEntry) -> ActivityEntry:
        """Append an entry. Entries are never modified afterwards."""
        self._entries.append(entry)
        logger.debug("Activity %s: %s", entry.kind.value, entry.message)
        return entry

    def record(
        self,
        kind: ActivityKind,
        message: str,
        source_ip: Optional[str] = None,
        source_mac: Optional[str] = None,
        target_ip: Optional[str] = None,
        target_mac: Optional[str] = None
    ) -> ActivityEntry:
        """Build an entry with a fresh id and append it"""
        return self.append(ActivityEntry(
            id=self.next_id(),
            kind=kind,
            message=message,
            source_ip=source_ip,
            source_mac=source_mac,
            target_ip=target_ip,
            target_mac=target_mac
        ))

    def recent(self, n: Optional[int] = None) -> List[ActivityEntry]:
        """
        Most recent entries, newest first

        Args:
            n: Number of entries (defaults to the configured view size)
        """
        if n is None:
            n = self.view_size
        if n <= 0:
            return []
        return list(reversed(self._entries[-n:]))

    def entries(self) -> List[ActivityEntry]:
        """All entries in chronological order"""
        return list(self._entries)

    def latest(self) -> Optional[ActivityEntry]:
        return self._entries[-1] if self._entries else None

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def export_json(self, filepath: str):
        """Export the full log to a JSON file"""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump([entry.to_dict() for entry in self._entries], f, indent=2)

        logger.info("Exported %d activity entries to %s", len(self._entries), filepath)

    def export_csv(self, filepath: str):
        """Export the full log to a CSV file"""
        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow([
                'id', 'timestamp', 'kind', 'message',
                'source_ip', 'source_mac', 'target_ip', 'target_mac'
            ])

            for entry in self._entries:
                writer.writerow([
                    entry.id,
                    entry.timestamp.isoformat(),
                    entry.kind.value,
                    entry.message,
                    entry.source_ip,
                    entry.source_mac,
                    entry.target_ip,
                    entry.target_mac
                ])

        logger.info("Exported %d activity entries to %s", len(self._entries), filepath)
