"""
Data model for the simulated network: devices and in-flight packets.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional

from core.addressing import validate_ip, validate_mac
from core.errors import InvalidDeviceData


class DeviceKind(Enum):
    """Role of a device in the topology."""
    ENDPOINT = "endpoint"
    RELAY = "relay"      # Central hub, also acts as RARP server


# Names used by earlier stored topologies
_LEGACY_KINDS = {
    "computer": DeviceKind.ENDPOINT,
    "hub": DeviceKind.RELAY,
}


@dataclass
class Device:
    """A simulated network endpoint."""
    id: str
    name: str
    ip: str
    mac: str
    x: float = 0.0
    y: float = 0.0
    is_online: bool = True
    kind: DeviceKind = DeviceKind.ENDPOINT

    @property
    def is_relay(self) -> bool:
        return self.kind is DeviceKind.RELAY

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['kind'] = self.kind.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Device':
        """
        Build a device from its stored form.

        Accepts both the current keys and the legacy ones
        ('isOnline', 'type' of 'computer'/'hub').

        Raises:
            InvalidDeviceData: on missing fields or malformed addresses.
        """
        if not isinstance(data, dict):
            raise InvalidDeviceData(f"Device record must be an object, got {type(data).__name__}")

        try:
            device_id = str(data['id'])
            name = str(data.get('name', device_id))
            ip = data['ip']
            mac = data['mac']
        except KeyError as e:
            raise InvalidDeviceData(f"Device record missing field {e}") from e

        raw_kind = data.get('kind', data.get('type', DeviceKind.ENDPOINT.value))
        try:
            if isinstance(raw_kind, DeviceKind):
                kind = raw_kind
            elif isinstance(raw_kind, str) and raw_kind in _LEGACY_KINDS:
                kind = _LEGACY_KINDS[raw_kind]
            else:
                kind = DeviceKind(raw_kind)
        except (TypeError, ValueError) as e:
            raise InvalidDeviceData(f"Unknown device kind: {raw_kind!r}") from e

        try:
            x = float(data.get('x', 0.0))
            y = float(data.get('y', 0.0))
        except (TypeError, ValueError) as e:
            raise InvalidDeviceData(f"Invalid position for {device_id}: {e}") from e

        device = cls(
            id=device_id,
            name=name,
            ip=ip,
            mac=mac,
            x=x,
            y=y,
            is_online=bool(data.get('is_online', data.get('isOnline', True))),
            kind=kind,
        )
        device.validate()
        return device

    def validate(self):
        """Raise InvalidDeviceData if the addresses are malformed."""
        if not self.id:
            raise InvalidDeviceData("Device id must not be empty")
        if not validate_ip(self.ip):
            raise InvalidDeviceData(f"Invalid IP address for {self.id}: {self.ip!r}")
        if not validate_mac(self.mac):
            raise InvalidDeviceData(f"Invalid MAC address for {self.id}: {self.mac!r}")

    def __repr__(self):
        return f"Device(id={self.id}, ip={self.ip}, mac={self.mac}, kind={self.kind.value})"


class PacketType(Enum):
    """Phase tag of a simulated packet."""
    ARP_REQUEST = "ARP_REQUEST"
    ARP_REPLY = "ARP_REPLY"
    RARP_REQUEST = "RARP_REQUEST"
    RARP_REPLY = "RARP_REPLY"

    @property
    def is_request(self) -> bool:
        return self in (PacketType.ARP_REQUEST, PacketType.RARP_REQUEST)

    @property
    def is_reverse(self) -> bool:
        return self in (PacketType.RARP_REQUEST, PacketType.RARP_REPLY)


@dataclass(frozen=True)
class Packet:
    """
    Simulated packet travelling across the topology.

    Immutable: progress updates produce a new record.
    """
    id: str
    packet_type: PacketType
    source_ip: str
    source_mac: str
    target_ip: Optional[str] = None
    target_mac: Optional[str] = None
    progress: int = 0   # Animation progress, 0-100
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['packet_type'] = self.packet_type.value
        return data
