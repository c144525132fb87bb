"""
Core module for the ARP/RARP simulator.

Includes:
- Device and packet data model
- Address validation, generation and the RARP address pool
- ARP cache and activity log
- Device registry with key-value persistence
- ARP/RARP frame building with Scapy
"""

from .models import Device, DeviceKind, Packet, PacketType
from .addressing import AddressPool, validate_ip, validate_mac
from .address_cache import AddressCache, CacheEntry
from .activity_log import ActivityEntry, ActivityKind, ActivityRecorder
from .device_registry import DeviceRegistry, default_devices
from .storage import JSONFileStore, KeyValueStore, MemoryStore
from .arp_packet import ARPFrameBuilder, describe_packet
from .errors import (
    SimulatorError,
    PreconditionViolation,
    PersistenceReadFailure,
    InvalidDeviceData,
    AddressPoolExhausted,
)
