"""
Address helpers: validation, random generation and the RARP address pool.
"""

import ipaddress
import random
import re
from typing import Iterable, Optional

from config import settings
from core.errors import AddressPoolExhausted

_MAC_RE = re.compile(r'^([0-9a-f]{2}[:-]){5}[0-9a-f]{2}$')


def validate_ip(ip: str) -> bool:
    """Validate dotted-quad IPv4 format"""
    if not isinstance(ip, str):
        return False
    parts = ip.split('.')
    if len(parts) != 4:
        return False
    for part in parts:
        if not part.isdecimal() or len(part) > 3:
            return False
        if int(part) > 255:
            return False
    return True


def validate_mac(mac: str) -> bool:
    """Validate MAC address format (aa:bb:cc:dd:ee:ff or aa-bb-cc-dd-ee-ff)"""
    if not isinstance(mac, str):
        return False
    return bool(_MAC_RE.match(mac.lower()))


def normalize_mac(mac: str) -> str:
    """Normalize MAC address to colon-separated upper case"""
    return mac.upper().replace('-', ':')


def is_assigned(ip: str) -> bool:
    """True if ip is a well-formed address other than the placeholder"""
    return validate_ip(ip) and ip != settings.PLACEHOLDER_ADDRESS


def random_mac(rng: Optional[random.Random] = None) -> str:
    """Generate a random upper-case MAC address"""
    rng = rng or random
    return ':'.join(f"{rng.randint(0, 255):02X}" for _ in range(6))


def random_ip(rng: Optional[random.Random] = None) -> str:
    """Generate a random address in 192.168.0.0/16"""
    rng = rng or random
    return f"192.168.{rng.randint(1, 255)}.{rng.randint(1, 254)}"


class AddressPool:
    """
    Address pool used by the simulated RARP server.

    Allocation is a linear scan of the pool network starting at a base
    address, skipping every address already in use. The result is
    deterministic for a given set of taken addresses.
    """

    def __init__(
        self,
        network: str = settings.RARP_POOL_NETWORK,
        start: str = settings.RARP_POOL_START
    ):
        self.network = ipaddress.ip_network(network)
        self.start = ipaddress.ip_address(start)
        if self.start not in self.network:
            raise ValueError(f"{start} is not inside {network}")

    def allocate(self, taken: Iterable[str]) -> str:
        """
        Return the first free address at or after the start address.

        Args:
            taken: Addresses already in use.

        Raises:
            AddressPoolExhausted: if every candidate is taken.
        """
        used = set(taken)
        for host in self.network.hosts():
            if host < self.start:
                continue
            candidate = str(host)
            if candidate not in used:
                return candidate
        raise AddressPoolExhausted(
            f"No free address in {self.network} from {self.start}"
        )
