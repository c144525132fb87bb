"""
Device registry for the simulated network.

Holds the devices taking part in the simulation, persists them to a
key-value store on every change and restores them at startup.
"""

import json
import logging
import random
import threading
from typing import Iterable, Iterator, List, Optional

from config import settings
from core.addressing import normalize_mac, random_ip, random_mac, validate_ip
from core.errors import InvalidDeviceData, PersistenceReadFailure
from core.models import Device, DeviceKind
from core.storage import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)


# Names used for generated topologies
_RANDOM_NAMES = ['Alpha', 'Beta', 'Gamma', 'Delta', 'Epsilon', 'Zeta', 'Theta', 'Lambda']
_RANDOM_ROLES = ['Terminal', 'Station', 'Node', 'Hub', 'Router', 'Server', 'Gateway', 'Proxy']


def default_relay() -> Device:
    """The central hub present in every topology."""
    return Device(
        id="device-hub",
        name="Network Hub",
        ip="192.168.1.1",
        mac="FF:FF:FF:FF:FF:FF",
        x=300,
        y=280,
        kind=DeviceKind.RELAY
    )


def default_devices() -> List[Device]:
    """Built-in topology used when nothing usable is stored."""
    return [
        Device(id="device-1", name="Alpha Terminal", ip="192.168.1.10",
               mac="00:1A:2B:3C:4D:5E", x=50, y=80),
        default_relay(),
        Device(id="device-2", name="Beta Station", ip="192.168.1.20",
               mac="AA:BB:CC:DD:EE:FF", x=50, y=160),
        Device(id="device-3", name="Gamma Node", ip="192.168.1.30",
               mac="11:22:33:44:55:66", x=50, y=240),
        Device(id="device-4", name="Delta Hub", ip="192.168.1.40",
               mac="77:88:99:AA:BB:CC", x=50, y=320, kind=DeviceKind.RELAY),
        Device(id="device-5", name="Epsilon Router", ip="192.168.1.50",
               mac="DD:EE:FF:00:11:22", x=50, y=400),
        Device(id="device-6", name="Zeta Server", ip="192.168.1.60",
               mac="33:44:55:66:77:88", x=50, y=480),
    ]


class DeviceRegistry:
    """
    Mutable collection of simulated devices.

    Device ids are unique. Every mutation is written to the store
    (fire-and-forget: write failures are logged, never raised). The
    registry is loaded once at construction and falls back to the
    default topology when the stored record is absent, empty or
    unreadable.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        storage_key: str = settings.STORAGE_KEY,
        random_size: int = settings.RANDOM_TOPOLOGY_SIZE,
        rng: Optional[random.Random] = None
    ):
        self.store = store if store is not None else MemoryStore()
        self.storage_key = storage_key
        self.random_size = random_size
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._devices: List[Device] = self._load()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _read_stored(self) -> List[Device]:
        try:
            raw = self.store.get(self.storage_key)
        except (OSError, ValueError) as e:
            raise PersistenceReadFailure(self.storage_key, "store unreadable", e) from e

        if raw is None:
            raise PersistenceReadFailure(self.storage_key, "no stored record")

        try:
            records = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise PersistenceReadFailure(self.storage_key, "malformed JSON", e) from e

        if not isinstance(records, list) or not records:
            raise PersistenceReadFailure(self.storage_key, "record is not a non-empty list")

        try:
            devices = [Device.from_dict(record) for record in records]
            self._check_unique(devices)
        except (InvalidDeviceData, TypeError, ValueError) as e:
            raise PersistenceReadFailure(self.storage_key, str(e), e) from e
        return devices

    def _load(self) -> List[Device]:
        try:
            devices = self._read_stored()
        except PersistenceReadFailure as e:
            if e.cause is None:
                logger.info("%s; using default topology", e)
            else:
                logger.warning("%s; using default topology", e)
            return default_devices()

        logger.info("Loaded %d devices from store", len(devices))
        return devices

    def _save(self):
        payload = json.dumps([device.to_dict() for device in self._devices])
        try:
            self.store.set(self.storage_key, payload)
        except (OSError, ValueError) as e:
            logger.warning("Could not persist devices: %s", e)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_unique(devices: Iterable[Device]):
        seen = set()
        for device in devices:
            if device.id in seen:
                raise InvalidDeviceData(f"Duplicate device id: {device.id}")
            seen.add(device.id)

    def replace_all(self, devices: Iterable[Device]):
        """
        Replace the whole device set.

        Raises:
            InvalidDeviceData: on duplicate ids or malformed addresses.
                The registry is left unchanged.
        """
        new_devices = list(devices)
        for device in new_devices:
            device.validate()
        self._check_unique(new_devices)

        with self._lock:
            self._devices = new_devices
            self._save()
        logger.info("Device registry replaced (%d devices)", len(new_devices))

    def randomize(self) -> List[Device]:
        """
        Regenerate the topology: random_size endpoints with unique random
        addresses and hardware ids, plus the default relay.
        """
        relay = default_relay()
        used_ips = {relay.ip}
        used_macs = {relay.mac}
        devices = [relay]

        for i in range(self.random_size):
            ip = random_ip(self._rng)
            while ip in used_ips:
                ip = random_ip(self._rng)
            mac = random_mac(self._rng)
            while mac in used_macs:
                mac = random_mac(self._rng)
            used_ips.add(ip)
            used_macs.add(mac)

            devices.append(Device(
                id=f"device-{i + 1}",
                name=f"{_RANDOM_NAMES[i % len(_RANDOM_NAMES)]} {_RANDOM_ROLES[i % len(_RANDOM_ROLES)]}",
                ip=ip,
                mac=mac,
                x=100,
                y=100 + i * 100
            ))

        with self._lock:
            self._devices = devices
            self._save()
        logger.info("Generated random topology with %d endpoints", self.random_size)
        return list(devices)

    def update_address(self, device_id: str, new_ip: str) -> bool:
        """
        Overwrite a device's logical address.

        Returns:
            False if no device has this id.

        Raises:
            InvalidDeviceData: if new_ip is malformed.
        """
        if not validate_ip(new_ip):
            raise InvalidDeviceData(f"Invalid IP address: {new_ip!r}")

        with self._lock:
            device = self.get(device_id)
            if device is None:
                return False
            old_ip = device.ip
            device.ip = new_ip
            self._save()
        logger.info("Device %s address %s -> %s", device_id, old_ip, new_ip)
        return True

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get(self, device_id: str) -> Optional[Device]:
        with self._lock:
            for device in self._devices:
                if device.id == device_id:
                    return device
            return None

    def find_by_ip(self, ip: str) -> Optional[Device]:
        with self._lock:
            for device in self._devices:
                if device.ip == ip:
                    return device
            return None

    def find_by_mac(self, mac: str) -> Optional[Device]:
        wanted = normalize_mac(mac)
        with self._lock:
            for device in self._devices:
                if normalize_mac(device.mac) == wanted:
                    return device
            return None

    def relay(self) -> Optional[Device]:
        """First relay in registry order, if any."""
        with self._lock:
            for device in self._devices:
                if device.is_relay:
                    return device
            return None

    def devices(self) -> List[Device]:
        with self._lock:
            return list(self._devices)

    def ips(self) -> List[str]:
        with self._lock:
            return [device.ip for device in self._devices]

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(self.devices())

    def __contains__(self, device_id: str) -> bool:
        return self.get(device_id) is not None
