"""
Orchestration Module

This package provides the simulation engine together with the packet
lifecycle manager and the generation-keyed phase scheduler it runs on.
"""

from orchestration.engine import SimulationEngine
from orchestration.lifecycle import PacketLifecycleManager, Phase
from orchestration.scheduler import ManualClock, PhaseScheduler, ThreadedTimerBackend
from orchestration.state import (
    EnginePhase,
    Guidance,
    Severity,
    SimulationMode,
    SimulationSnapshot,
    SimulationState,
    SimulationStep,
)

__all__ = [
    'SimulationEngine',
    'PacketLifecycleManager',
    'Phase',
    'ManualClock',
    'PhaseScheduler',
    'ThreadedTimerBackend',
    'EnginePhase',
    'Guidance',
    'Severity',
    'SimulationMode',
    'SimulationSnapshot',
    'SimulationState',
    'SimulationStep',
]
