"""
ARP/RARP frame building for simulated packets.

Frames are built for inspection only (summary, hexdump); the simulator
never puts them on a wire.
"""

try:
    from scapy.all import Ether, ARP
    SCAPY_AVAILABLE = True
except ImportError:
    SCAPY_AVAILABLE = False

from config import settings
from core.models import Packet, PacketType


class ARPFrameBuilder:
    """
    Builds Scapy Ether/ARP frames mirroring simulated packets.

    RARP uses the ARP header layout with its own EtherType and op codes.
    """

    # ARP hardware types
    HWTYPE_ETHERNET = 1

    # ARP protocol types
    PTYPE_IPV4 = 0x0800

    # Hardware and protocol address lengths
    HWLEN = 6  # MAC address length
    PLEN = 4   # IPv4 address length

    OPCODES = {
        PacketType.ARP_REQUEST: settings.ARP_REQUEST,
        PacketType.ARP_REPLY: settings.ARP_REPLY,
        PacketType.RARP_REQUEST: settings.RARP_REQUEST,
        PacketType.RARP_REPLY: settings.RARP_REPLY,
    }

    ZERO_MAC = "00:00:00:00:00:00"

    def build(self, packet: Packet) -> 'Ether':
        """
        Build the frame for a simulated packet.

        Requests are broadcast; replies go to the target hardware address
        when one is known.

        Returns:
            Scapy Ether/ARP packet.
        """
        if not SCAPY_AVAILABLE:
            raise RuntimeError("Scapy is required for frame building")

        ether_type = settings.ETH_TYPE_RARP if packet.packet_type.is_reverse else settings.ETH_TYPE_ARP
        if packet.packet_type.is_request or not packet.target_mac:
            dst = settings.BROADCAST_MAC
        else:
            dst = packet.target_mac.lower()

        src_mac = packet.source_mac.lower()
        if packet.packet_type is PacketType.RARP_REQUEST:
            # Who am I: sender and target hardware are both the requester
            target_mac = src_mac
        else:
            target_mac = (packet.target_mac or self.ZERO_MAC).lower()

        return (
            Ether(src=src_mac, dst=dst, type=ether_type) /
            ARP(
                hwtype=self.HWTYPE_ETHERNET,
                ptype=self.PTYPE_IPV4,
                hwlen=self.HWLEN,
                plen=self.PLEN,
                op=self.OPCODES[packet.packet_type],
                hwsrc=src_mac,
                psrc=packet.source_ip,
                hwdst=target_mac,
                pdst=packet.target_ip or settings.PLACEHOLDER_ADDRESS
            )
        )

    def summary(self, packet: Packet) -> str:
        """One-line Scapy summary of the frame"""
        return self.build(packet).summary()

    def to_bytes(self, packet: Packet) -> bytes:
        return bytes(self.build(packet))


def describe_packet(packet: Packet) -> str:
    """Human-readable meaning of a packet"""
    if packet.packet_type is PacketType.ARP_REQUEST:
        return f"Who has {packet.target_ip}? Tell {packet.source_ip}"
    if packet.packet_type is PacketType.ARP_REPLY:
        return f"{packet.source_ip} is at {packet.source_mac}"
    if packet.packet_type is PacketType.RARP_REQUEST:
        return f"Who am I? My MAC is {packet.source_mac}"
    if packet.packet_type is PacketType.RARP_REPLY:
        return f"You are {packet.target_ip}"
    return "Unknown packet type"
