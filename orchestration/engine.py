"""
ARP/RARP Simulation Engine

This module provides the orchestrator that drives a simulation run:
- Protocol mode and step sequencing
- Device selection
- Timed packet phases through the PacketLifecycleManager
- ARP cache, device registry and activity log updates

A run goes through four steps:
1. Select a device
2. Send the request
3. Receive the reply
4. Update the ARP cache (ARP) or the device address (RARP)

Every transition publishes an immutable SimulationSnapshot to subscribers.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Union

from config import settings
from config.settings import SimulationConfig
from core.activity_log import ActivityKind, ActivityRecorder
from core.address_cache import AddressCache
from core.addressing import AddressPool
from core.arp_packet import describe_packet
from core.device_registry import DeviceRegistry
from core.errors import AddressPoolExhausted, InvalidDeviceData, PreconditionViolation
from core.models import Device, Packet, PacketType
from orchestration.lifecycle import PacketLifecycleManager, Phase
from orchestration.scheduler import PhaseScheduler, TimerBackend
from orchestration.state import (
    EnginePhase, Guidance, Severity, SimulationMode, SimulationSnapshot,
    SimulationState, SimulationStep, steps_for_mode,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[SimulationSnapshot], None]


class SimulationEngine:
    """
    Top-level orchestrator for ARP/RARP simulations

    Usage:
        engine = SimulationEngine(registry=DeviceRegistry(), backend=ManualClock())
        engine.subscribe(lambda snapshot: print(snapshot.phase))

        engine.select_mode(SimulationMode.FORWARD)
        engine.select_device("device-1")
        engine.start()

    Operations never raise for misuse: a request that does not fit the
    current state publishes a warning guidance and changes nothing.
    """

    def __init__(
        self,
        registry: Optional[DeviceRegistry] = None,
        backend: Optional[TimerBackend] = None,
        config: Optional[SimulationConfig] = None,
        pool: Optional[AddressPool] = None
    ):
        self.config = config or SimulationConfig()
        self.registry = registry if registry is not None else DeviceRegistry()
        self.cache = AddressCache()
        self.activity = ActivityRecorder(view_size=self.config.activity_view_size)
        self.pool = pool or AddressPool(self.config.pool_network, self.config.pool_start)

        self._lock = threading.RLock()
        self.scheduler = PhaseScheduler(backend=backend, lock=self._lock)
        self.lifecycle = PacketLifecycleManager(self.scheduler)

        self._subscribers: List[Subscriber] = []
        self._clear_state()

    def _clear_state(self):
        self._mode: Optional[SimulationMode] = None
        self._step_index = 0
        self._running = False
        self._complete = False
        self._selected_id: Optional[str] = None
        self._steps: List[SimulationStep] = []
        self._guidance: Optional[Guidance] = None

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self.scheduler.generation

    @property
    def state(self) -> SimulationState:
        with self._lock:
            return SimulationState(
                mode=self._mode,
                current_step=self._step_index,
                is_running=self._running,
                is_complete=self._complete,
                selected_device_id=self._selected_id,
                steps=tuple(self._steps),
                packets=self.lifecycle.active_packets()
            )

    @property
    def phase(self) -> EnginePhase:
        return self.state.phase

    @property
    def guidance(self) -> Optional[Guidance]:
        return self._guidance

    @property
    def selected_device(self) -> Optional[Device]:
        """Selected device resolved through the registry"""
        with self._lock:
            if self._selected_id is None:
                return None
            return self.registry.get(self._selected_id)

    def snapshot(self) -> SimulationSnapshot:
        with self._lock:
            return SimulationSnapshot(
                state=self.state,
                recent_activity=tuple(self.activity.recent()),
                cache=tuple(self.cache.entries()),
                devices=tuple(replace(device) for device in self.registry.devices()),
                guidance=self._guidance,
                generation=self.generation
            )

    def subscribe(self, callback: Subscriber):
        """Register a callback receiving a snapshot after every transition"""
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber):
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def _publish(self):
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Snapshot subscriber %r failed", callback)

    def _set_guidance(self, title: str, message: str, severity: Severity = Severity.INFO):
        self._guidance = Guidance(title=title, message=message, severity=severity)
        logger.info("[%s] %s", severity.value, title)

    def _reject(self, violation: PreconditionViolation):
        logger.info("Precondition not met: %s", violation.message)
        self._set_guidance(violation.title, violation.message, Severity.WARNING)
        self._publish()

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def select_mode(self, mode: Union[SimulationMode, str]) -> bool:
        """
        Enter a protocol mode with a fresh 4-step sequence

        Ignored while a run is in progress. Cancels any pending timers,
        clears the selected device and the ARP cache.
        """
        mode = SimulationMode.parse(mode)
        with self._lock:
            if self._running:
                logger.debug("Ignoring mode change to %s while running", mode.value)
                return False

            self.lifecycle.cancel_all()
            self._mode = mode
            self._step_index = 0
            self._running = False
            self._complete = False
            self._selected_id = None
            self._steps = list(steps_for_mode(mode))
            self.cache.clear()

            if mode is SimulationMode.FORWARD:
                details = "ARP Protocol: IP to MAC Address Resolution"
                target = "sender device"
            else:
                details = "RARP Protocol: MAC to IP Address Assignment"
                target = "diskless device"
            self._set_guidance(
                f"{mode.value} Mode Selected",
                f"{details}\n" +
                "\n".join(f"Step {i + 1}: {step.title}" for i, step in enumerate(self._steps)) +
                f"\n\nNext: select the {target}.",
                Severity.SUCCESS
            )
            self._publish()
            return True

    def select_device(self, device: Union[Device, str]) -> bool:
        """Select the device for the run (step 0 only)"""
        device_id = device.id if isinstance(device, Device) else device
        with self._lock:
            try:
                self._check_can_select(device_id)
            except PreconditionViolation as violation:
                self._reject(violation)
                return False

            selected = self.registry.get(device_id)
            self._complete_step(0)
            self._selected_id = device_id

            role = "sender device" if self._mode is SimulationMode.FORWARD else "diskless device"
            self._set_guidance(
                "Device Selected Successfully!",
                f"{selected.name} has been selected as the {role}.\n"
                f"IP Address: {selected.ip}\n"
                f"MAC Address: {selected.mac}\n"
                f"Status: {'Online' if selected.is_online else 'Offline'}\n\n"
                f"Start the {self._mode.value} simulation to proceed.",
                Severity.SUCCESS
            )
            self._publish()
            return True

    def _check_can_select(self, device_id: str):
        if self._mode is None:
            raise PreconditionViolation(
                "Mode Required", "Select ARP or RARP mode before choosing a device.")
        if self._running:
            raise PreconditionViolation(
                "Simulation Running", "Wait for the current simulation to finish.")
        if self._complete:
            raise PreconditionViolation(
                "Simulation Complete", "Reset or select a mode to run again.")
        if self._step_index != 0:
            raise PreconditionViolation(
                "Device Already Selected", "A device has already been selected for this run.")
        if self.registry.get(device_id) is None:
            raise PreconditionViolation(
                "Unknown Device", f"No device with id {device_id!r} exists.")

    def start(self) -> bool:
        """
        Start the run for the selected device

        Effects appear later, as the scheduled phases fire.
        """
        with self._lock:
            try:
                device = self._check_can_start()
                if self._mode is SimulationMode.FORWARD:
                    phases = self._forward_script(device)
                else:
                    phases = self._reverse_script(device)
            except PreconditionViolation as violation:
                self._reject(violation)
                return False
            except AddressPoolExhausted as e:
                logger.warning("RARP pool exhausted: %s", e)
                self._set_guidance("No Address Available", str(e), Severity.ERROR)
                self._publish()
                return False

            self._running = True
            self.lifecycle.run(phases, on_finished=self._finish_run)
            self._set_guidance(
                f"{self._mode.value} Simulation Started!",
                f"Simulation is now running with {device.name}.",
                Severity.SUCCESS
            )
            self._publish()
            return True

    def _check_can_start(self) -> Device:
        if self._running:
            raise PreconditionViolation(
                "Simulation Running", "A simulation is already in progress.")
        if self._complete:
            raise PreconditionViolation(
                "Simulation Complete", "Reset or select a mode to run again.")
        if self._mode is None or self._selected_id is None:
            raise PreconditionViolation(
                "Selection Required", "Please select a device before starting the simulation.")

        device = self.registry.get(self._selected_id)
        if device is None:
            # Registry was replaced since the selection; reopen step 0
            self._selected_id = None
            self._step_index = 0
            self._steps[0] = replace(self._steps[0], is_completed=False)
            raise PreconditionViolation(
                "Device Missing", "The selected device no longer exists. Select another device.")
        return device

    def reset(self):
        """Cancel any run and return to Idle with everything cleared"""
        with self._lock:
            self.lifecycle.cancel_all()
            self._clear_state()
            self.cache.clear()
            self.activity.clear()
            logger.info("Simulation reset (generation %d)", self.generation)
            self._publish()

    def generate_random_topology(self) -> bool:
        with self._lock:
            if self._running:
                self._reject(PreconditionViolation(
                    "Simulation Running", "The topology cannot change during a simulation."))
                return False
            self.registry.randomize()
            self._set_guidance(
                "Random Nebula Generated",
                "A new random network topology has been created with fresh device configurations.",
                Severity.SUCCESS
            )
            self._publish()
            return True

    def bulk_update_devices(self, devices: Iterable[Union[Device, dict]]) -> bool:
        with self._lock:
            if self._running:
                self._reject(PreconditionViolation(
                    "Simulation Running", "The topology cannot change during a simulation."))
                return False
            try:
                new_devices = [
                    d if isinstance(d, Device) else Device.from_dict(d) for d in devices
                ]
                self.registry.replace_all(new_devices)
            except InvalidDeviceData as e:
                self._set_guidance("Invalid Device Data", str(e), Severity.ERROR)
                self._publish()
                return False

            self._set_guidance(
                "Database Updated",
                "Network device configuration has been updated successfully.",
                Severity.SUCCESS
            )
            self._publish()
            return True

    def update_packet_progress(self, packet_id: str, progress: float) -> bool:
        with self._lock:
            if self.lifecycle.update_progress(packet_id, progress) is None:
                return False
            self._publish()
            return True

    def complete_packet(self, packet_id: str) -> bool:
        """Renderer callback: the packet's animation has finished"""
        with self._lock:
            if not self.lifecycle.complete(packet_id):
                return False
            self._publish()
            return True

    # Inbound event names used by the UI layer
    on_mode_select = select_mode
    on_device_select = select_device
    on_start_simulation = start
    on_reset = reset
    on_generate_random_topology = generate_random_topology
    on_bulk_update_devices = bulk_update_devices
    on_packet_progress = update_packet_progress
    on_packet_animation_complete = complete_packet

    # -------------------------------------------------------------------------
    # Phase scripts
    # -------------------------------------------------------------------------

    def _complete_step(self, index: int):
        self._steps[index] = replace(self._steps[index], is_completed=True)
        self._step_index = index + 1

    def _arrived(self, step_index: int, title: str, packet: Optional[Packet]):
        self._complete_step(step_index)
        if packet is not None:
            self._set_guidance(title, describe_packet(packet))
        self._publish()

    def _finish_run(self):
        self._running = False
        self._complete = True
        self._publish()

    def pick_target(self, sender: Device) -> Optional[Device]:
        """
        Device whose address the sender resolves

        First other endpoint in registry order, else the first other
        device of any kind. Relays are skipped on purpose so the hub is
        only resolved when no other endpoint exists.
        """
        others = [d for d in self.registry.devices() if d.id != sender.id]
        for device in others:
            if not device.is_relay:
                return device
        return others[0] if others else None

    def _forward_script(self, sender: Device) -> List[Phase]:
        target = self.pick_target(sender)
        if target is None:
            raise PreconditionViolation(
                "No Target Device", "ARP needs at least one other device in the network.")

        # Captured copies: the run keeps the addresses it started with
        sender = replace(sender)
        target = replace(target)
        delay = self.config.phase_delay_ms

        def request_packet() -> Packet:
            return Packet(
                id=self.lifecycle.next_packet_id(PacketType.ARP_REQUEST),
                packet_type=PacketType.ARP_REQUEST,
                source_ip=sender.ip,
                source_mac=sender.mac,
                target_ip=target.ip
            )

        def reply_packet() -> Packet:
            return Packet(
                id=self.lifecycle.next_packet_id(PacketType.ARP_REPLY),
                packet_type=PacketType.ARP_REPLY,
                source_ip=target.ip,
                source_mac=target.mac,
                target_ip=sender.ip,
                target_mac=sender.mac
            )

        def on_request(packet):
            self.activity.record(
                ActivityKind.ARP_REQUEST,
                f"{sender.name} broadcasting ARP request for {target.ip}",
                sender.ip, sender.mac, target.ip
            )
            self._arrived(1, "ARP Request Broadcast", packet)

        def on_reply(packet):
            self.activity.record(
                ActivityKind.ARP_REPLY,
                f"{target.name} responding with MAC address",
                target.ip, target.mac, sender.ip, sender.mac
            )
            self._arrived(2, "ARP Reply Received", packet)

        def on_cache_update(packet):
            self.cache.upsert(target.ip, target.mac, target.name)
            self.activity.record(
                ActivityKind.CACHE_UPDATE,
                f"ARP cache updated: {target.ip} → {target.mac}",
                target.ip, target.mac
            )
            self._set_guidance(
                "ARP Resolution Complete!",
                f"{sender.name} found {target.name}'s MAC address\n"
                f"IP: {target.ip} → MAC: {target.mac}\n"
                "ARP cache updated.",
                Severity.SUCCESS
            )
            self._complete_step(3)

        return [
            Phase("send-request", delay, on_request, request_packet),
            Phase("receive-reply", delay, on_reply, reply_packet),
            Phase("update-cache", delay, on_cache_update),
        ]

    def _reverse_script(self, device: Device) -> List[Phase]:
        device = replace(device)
        assigned_ip = self.pool.allocate(self.registry.ips())
        server = self.registry.relay()
        if server is None or server.id == device.id:
            server = replace(device, ip=assigned_ip)
        else:
            server = replace(server)
        delay = self.config.phase_delay_ms

        def request_packet() -> Packet:
            return Packet(
                id=self.lifecycle.next_packet_id(PacketType.RARP_REQUEST),
                packet_type=PacketType.RARP_REQUEST,
                source_ip=settings.PLACEHOLDER_ADDRESS,
                source_mac=device.mac
            )

        def reply_packet() -> Packet:
            return Packet(
                id=self.lifecycle.next_packet_id(PacketType.RARP_REPLY),
                packet_type=PacketType.RARP_REPLY,
                source_ip=server.ip,
                source_mac=server.mac,
                target_ip=assigned_ip,
                target_mac=device.mac
            )

        def on_request(packet):
            self.activity.record(
                ActivityKind.RARP_REQUEST,
                f"{device.name} requesting IP address assignment",
                settings.PLACEHOLDER_ADDRESS, device.mac
            )
            self._arrived(1, "RARP Request Sent", packet)

        def on_reply(packet):
            self.activity.record(
                ActivityKind.RARP_REPLY,
                f"RARP server assigned IP {assigned_ip} to {device.name}",
                server.ip, server.mac, assigned_ip, device.mac
            )
            self._arrived(2, "RARP Reply Received", packet)

        def on_device_update(packet):
            if not self.registry.update_address(device.id, assigned_ip):
                logger.warning("Device %s disappeared before address assignment", device.id)
            self.activity.record(
                ActivityKind.DEVICE_UPDATE,
                f"Device {device.name} updated with IP {assigned_ip}",
                assigned_ip, device.mac
            )
            self._set_guidance(
                "RARP Assignment Complete!",
                f"{device.name} received IP address\n"
                f"MAC: {device.mac} → IP: {assigned_ip}",
                Severity.SUCCESS
            )
            self._complete_step(3)

        return [
            Phase("send-rarp-request", delay, on_request, request_packet),
            Phase("receive-rarp-reply", delay, on_reply, reply_packet),
            Phase("update-device", delay, on_device_update),
        ]
