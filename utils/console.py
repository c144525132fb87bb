"""
Console Renderer for the ARP/RARP Simulator

Prints what the engine publishes: guidance messages colored by severity,
new activity entries, packets with their frame summary, and a progress bar
over the steps of the run.
"""

import sys
from typing import Iterable, Optional, Set, TextIO

from colorama import Fore, Style, init as colorama_init
from tqdm import tqdm

from core.activity_log import ActivityEntry
from core.address_cache import CacheEntry
from core.arp_packet import ARPFrameBuilder, describe_packet
from core.models import Device
from orchestration.state import Guidance, Severity, SimulationSnapshot


SEVERITY_COLORS = {
    Severity.INFO: Fore.CYAN,
    Severity.SUCCESS: Fore.GREEN,
    Severity.WARNING: Fore.YELLOW,
    Severity.ERROR: Fore.RED,
}


def format_guidance(guidance: Guidance) -> str:
    color = SEVERITY_COLORS[guidance.severity]
    body = "\n".join(f"    {line}" for line in guidance.message.splitlines())
    return f"{color}{Style.BRIGHT}[{guidance.severity.value.upper()}] {guidance.title}{Style.RESET_ALL}\n{body}"


def format_device_table(devices: Iterable[Device]) -> str:
    lines = [f"  {'ID':<14}{'NAME':<18}{'IP':<17}{'MAC':<19}KIND"]
    for device in devices:
        lines.append(
            f"  {device.id:<14}{device.name:<18}{device.ip:<17}{device.mac:<19}{device.kind.value}"
        )
    return "\n".join(lines)


def format_cache_table(entries: Iterable[CacheEntry]) -> str:
    entries = list(entries)
    if not entries:
        return "  (ARP cache is empty)"
    lines = [f"  {'IP':<17}{'MAC':<19}DEVICE"]
    for entry in entries:
        lines.append(f"  {entry.address:<17}{entry.hardware_id:<19}{entry.display_name or '-'}")
    return "\n".join(lines)


def format_activity(entry: ActivityEntry) -> str:
    timestamp = entry.timestamp.strftime("%H:%M:%S")
    return f"[{timestamp}] [{entry.kind.value}] {entry.message}"


class ConsoleRenderer:
    """
    Snapshot subscriber printing to a text stream

    Usage:
        renderer = ConsoleRenderer()
        engine.subscribe(renderer)
    """

    def __init__(self, stream: Optional[TextIO] = None, show_frames: bool = True,
                 progress: bool = True):
        colorama_init()
        self.stream = stream or sys.stdout
        self.show_frames = show_frames
        self.progress = progress
        self._frames = ARPFrameBuilder()
        self._last_guidance: Optional[Guidance] = None
        self._seen_activity: Set[str] = set()
        self._seen_packets: Set[str] = set()
        self._bar: Optional[tqdm] = None
        self._generation: Optional[int] = None

    def _print(self, text: str):
        if self._bar is not None:
            self._bar.write(text, file=self.stream)
        else:
            print(text, file=self.stream)

    def __call__(self, snapshot: SimulationSnapshot):
        self.render(snapshot)

    def render(self, snapshot: SimulationSnapshot):
        if snapshot.generation != self._generation:
            # New run generation: previous ids no longer apply
            self._generation = snapshot.generation
            self._seen_packets.clear()
            self.close()

        if snapshot.guidance is not None and snapshot.guidance != self._last_guidance:
            self._print(format_guidance(snapshot.guidance))
        self._last_guidance = snapshot.guidance

        for entry in reversed(snapshot.recent_activity):
            if entry.id not in self._seen_activity:
                self._seen_activity.add(entry.id)
                self._print(f"{Fore.MAGENTA}{format_activity(entry)}{Style.RESET_ALL}")

        for packet in snapshot.packets:
            if packet.id in self._seen_packets:
                continue
            self._seen_packets.add(packet.id)
            line = f"  >> {packet.id}: {describe_packet(packet)}"
            if self.show_frames:
                line += f"\n     {self._frames.summary(packet)}"
            self._print(line)

        self._update_progress(snapshot)

    def _update_progress(self, snapshot: SimulationSnapshot):
        state = snapshot.state
        if not self.progress or not state.steps:
            return
        if self._bar is None and state.is_running:
            self._bar = tqdm(
                total=len(state.steps),
                desc=f"{state.mode.value} run",
                unit="step",
                file=self.stream,
                leave=True
            )
            self._bar.update(len(state.completed_steps))
        if self._bar is not None:
            done = len(state.completed_steps)
            if done > self._bar.n:
                self._bar.update(done - self._bar.n)
            if state.is_complete:
                self.close()

    def close(self):
        if self._bar is not None:
            self._bar.close()
            self._bar = None
