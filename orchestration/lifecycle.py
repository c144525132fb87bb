"""
Packet lifecycle management.

A simulation run is a script of phases. Each phase waits its delay,
retires the packet of the previous phase, exposes its own packet (if it
has one) and then calls its arrival handler. Phases run strictly in
script order: the next one is only scheduled once the current one has
fired.
"""

import itertools
import logging
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from core.models import Packet, PacketType
from orchestration.scheduler import PhaseScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Phase:
    """One stage of a run."""
    name: str
    delay_ms: float
    on_arrive: Callable[[Optional[Packet]], None]
    packet_factory: Optional[Callable[[], Packet]] = None


class PacketLifecycleManager:
    """
    Creates packets and advances them through a phase script.

    Packets stay active until the renderer reports their animation as
    complete, the next phase of the same run fires, or cancel_all() is
    called. Not synchronized by itself: scheduled phases run under the
    scheduler's lock and callers are expected to hold the same lock.
    """

    def __init__(self, scheduler: PhaseScheduler,
                 on_packet: Optional[Callable[[Packet], None]] = None):
        self.scheduler = scheduler
        self.on_packet = on_packet
        self._packets: 'OrderedDict[str, Packet]' = OrderedDict()
        self._ids = itertools.count(1)

    def next_packet_id(self, packet_type: PacketType) -> str:
        return f"{packet_type.value.lower().replace('_', '-')}-{next(self._ids)}"

    def run(self, phases: Sequence[Phase],
            on_finished: Optional[Callable[[], None]] = None) -> int:
        """
        Start executing a phase script in the current generation.

        Returns:
            The generation the run belongs to.
        """
        generation = self.scheduler.generation
        if phases:
            self._schedule(list(phases), 0, generation, None, on_finished)
        elif on_finished:
            self.scheduler.schedule(0, on_finished, generation)
        return generation

    def _schedule(self, phases: List[Phase], index: int, generation: int,
                  previous_id: Optional[str],
                  on_finished: Optional[Callable[[], None]]):
        phase = phases[index]

        def fire():
            if previous_id is not None:
                self._packets.pop(previous_id, None)

            packet = None
            if phase.packet_factory is not None:
                packet = phase.packet_factory()
                self._packets[packet.id] = packet
                logger.debug("Phase %s emitted %s", phase.name, packet.id)
                if self.on_packet:
                    self.on_packet(packet)

            phase.on_arrive(packet)

            # The arrival handler may have cancelled the run
            if not self.scheduler.is_current(generation):
                return

            if index + 1 < len(phases):
                self._schedule(phases, index + 1, generation,
                               packet.id if packet else None, on_finished)
            elif on_finished:
                on_finished()

        self.scheduler.schedule(phase.delay_ms, fire, generation)

    def cancel_all(self) -> int:
        """
        Cancel every scheduled phase and drop all packets.

        Returns:
            The new generation.
        """
        generation = self.scheduler.invalidate()
        self._packets.clear()
        return generation

    def update_progress(self, packet_id: str, progress: float) -> Optional[Packet]:
        """Record animation progress (clamped to 0-100) for a packet."""
        packet = self._packets.get(packet_id)
        if packet is None:
            return None
        updated = replace(packet, progress=int(min(max(progress, 0), 100)))
        self._packets[packet_id] = updated
        return updated

    def complete(self, packet_id: str) -> bool:
        """Dispose of a packet whose animation finished."""
        return self._packets.pop(packet_id, None) is not None

    def get(self, packet_id: str) -> Optional[Packet]:
        return self._packets.get(packet_id)

    def active_packets(self) -> Tuple[Packet, ...]:
        return tuple(self._packets.values())
