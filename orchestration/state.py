"""
Simulation state types published by the engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from core.activity_log import ActivityEntry
from core.address_cache import CacheEntry
from core.models import Device, Packet


class SimulationMode(Enum):
    """Protocol being simulated"""
    FORWARD = "ARP"     # address -> hardware id
    REVERSE = "RARP"    # hardware id -> assigned address

    @classmethod
    def parse(cls, value) -> 'SimulationMode':
        """Accept a mode, its value ('ARP'/'RARP') or its name, any case."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        for mode in cls:
            if text in (mode.value, mode.name):
                return mode
        raise ValueError(f"Unknown simulation mode: {value!r}")


class EnginePhase(Enum):
    """Lifecycle of the engine"""
    IDLE = "idle"
    MODE_SELECTED = "mode_selected"
    DEVICE_SELECTED = "device_selected"
    RUNNING = "running"
    COMPLETE = "complete"


class Severity(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Guidance:
    """Message shown to the user after a transition"""
    title: str
    message: str
    severity: Severity = Severity.INFO


@dataclass(frozen=True)
class SimulationStep:
    id: str
    title: str
    description: str
    is_completed: bool = False


STEP_DEFINITIONS: Dict[SimulationMode, Tuple[Tuple[str, str, str], ...]] = {
    SimulationMode.FORWARD: (
        ('select-sender', 'Select Sender Device',
         'Choose the device that will send the ARP request'),
        ('send-request', 'Send ARP Request',
         'Broadcast ARP request to find MAC address'),
        ('receive-reply', 'Receive ARP Reply',
         'Target device responds with its MAC address'),
        ('update-cache', 'Update ARP Cache',
         'Store the IP-MAC mapping in cache'),
    ),
    SimulationMode.REVERSE: (
        ('select-device', 'Select Diskless Device',
         'Choose a device that needs an IP address'),
        ('send-rarp-request', 'Send RARP Request',
         'Request IP address from RARP server'),
        ('receive-rarp-reply', 'Receive RARP Reply',
         'Server assigns IP address to device'),
        ('update-device', 'Update Device IP',
         'Device now has assigned IP address'),
    ),
}


def steps_for_mode(mode: SimulationMode) -> Tuple[SimulationStep, ...]:
    return tuple(
        SimulationStep(id=step_id, title=title, description=description)
        for step_id, title, description in STEP_DEFINITIONS[mode]
    )


@dataclass(frozen=True)
class SimulationState:
    mode: Optional[SimulationMode] = None
    current_step: int = 0
    is_running: bool = False
    is_complete: bool = False
    selected_device_id: Optional[str] = None
    steps: Tuple[SimulationStep, ...] = ()
    packets: Tuple[Packet, ...] = ()

    @property
    def phase(self) -> EnginePhase:
        if self.is_running:
            return EnginePhase.RUNNING
        if self.is_complete:
            return EnginePhase.COMPLETE
        if self.mode is None:
            return EnginePhase.IDLE
        if self.selected_device_id is not None:
            return EnginePhase.DEVICE_SELECTED
        return EnginePhase.MODE_SELECTED

    @property
    def completed_steps(self) -> Tuple[str, ...]:
        return tuple(step.id for step in self.steps if step.is_completed)


@dataclass(frozen=True)
class SimulationSnapshot:
    """Immutable view of everything a renderer needs"""
    state: SimulationState
    recent_activity: Tuple[ActivityEntry, ...]
    cache: Tuple[CacheEntry, ...]
    devices: Tuple[Device, ...]
    guidance: Optional[Guidance]
    generation: int

    @property
    def packets(self) -> Tuple[Packet, ...]:
        return self.state.packets

    @property
    def phase(self) -> EnginePhase:
        return self.state.phase
