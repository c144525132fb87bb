"""
Configuration settings for the ARP/RARP Simulator.
"""

import logging
import os
from typing import Optional

import yaml

# =============================================================================
# Protocol Settings
# =============================================================================
# Broadcast hardware address
BROADCAST_MAC = "ff:ff:ff:ff:ff:ff"

# Address carried by a device that has not been assigned one yet (RARP)
PLACEHOLDER_ADDRESS = "0.0.0.0"

# ARP/RARP operation codes (RARP reuses the ARP frame layout)
ARP_REQUEST = 1
ARP_REPLY = 2
RARP_REQUEST = 3
RARP_REPLY = 4

# Ethernet types
ETH_TYPE_ARP = 0x0806
ETH_TYPE_RARP = 0x8035

# =============================================================================
# Simulation Settings
# =============================================================================
# Delay between two consecutive phases of a run (milliseconds)
PHASE_DELAY_MS = 2000

# Number of activity entries shown by the activity view
ACTIVITY_VIEW_SIZE = 10

# Steps per protocol mode
STEPS_PER_MODE = 4

# =============================================================================
# Topology Settings
# =============================================================================
# Number of endpoints generated by a random topology
RANDOM_TOPOLOGY_SIZE = 6

# Pool used by the RARP server when assigning addresses
RARP_POOL_NETWORK = "192.168.1.0/24"
RARP_POOL_START = "192.168.1.100"

# =============================================================================
# Persistence Settings
# =============================================================================
# Key under which the device list is stored
STORAGE_KEY = "arp-rarp-devices"

# Default location of the file-backed store
BASE_DIR = os.path.join(os.path.expanduser("~"), ".arp_sim")
DEFAULT_STORE_PATH = os.path.join(BASE_DIR, "store.json")

# =============================================================================
# Logging Settings
# =============================================================================
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# =============================================================================
# Helper Functions
# =============================================================================

def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger with the simulator's format.

    Args:
        level: Level name (e.g. 'DEBUG'). Defaults to LOG_LEVEL.
    """
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


class SimulationConfig:
    """
    Configuration class for simulation runs.

    Values default to the module-level settings and can be overridden from
    a YAML file (see from_yaml).
    """

    def __init__(
        self,
        phase_delay_ms: int = PHASE_DELAY_MS,
        activity_view_size: int = ACTIVITY_VIEW_SIZE,
        store_path: str = DEFAULT_STORE_PATH,
        storage_key: str = STORAGE_KEY,
        pool_network: str = RARP_POOL_NETWORK,
        pool_start: str = RARP_POOL_START,
        random_topology_size: int = RANDOM_TOPOLOGY_SIZE,
        log_level: str = LOG_LEVEL
    ):
        """
        Initialize simulation configuration.

        Args:
            phase_delay_ms: Delay between consecutive phases.
            activity_view_size: Size of the recent activity view.
            store_path: Path of the JSON file store.
            storage_key: Key the device list is stored under.
            pool_network: Network the RARP pool allocates from.
            pool_start: First address the RARP pool hands out.
            random_topology_size: Endpoints created by a random topology.
            log_level: Logging level name.
        """
        self.phase_delay_ms = phase_delay_ms
        self.activity_view_size = activity_view_size
        self.store_path = store_path
        self.storage_key = storage_key
        self.pool_network = pool_network
        self.pool_start = pool_start
        self.random_topology_size = random_topology_size
        self.log_level = log_level

    @classmethod
    def from_yaml(cls, path: str) -> 'SimulationConfig':
        """
        Load configuration overrides from a YAML mapping.

        Unknown keys are ignored. A missing or empty file yields defaults.
        """
        config = cls()
        if not os.path.exists(path):
            return config

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

        for key, value in data.items():
            if hasattr(config, key):
                setattr(config, key, value)
        return config

    @property
    def is_valid(self) -> bool:
        """Check if the configuration is valid."""
        return (
            self.phase_delay_ms >= 0
            and self.activity_view_size > 0
            and self.random_topology_size > 0
        )

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            'phase_delay_ms': self.phase_delay_ms,
            'activity_view_size': self.activity_view_size,
            'store_path': self.store_path,
            'storage_key': self.storage_key,
            'pool_network': self.pool_network,
            'pool_start': self.pool_start,
            'random_topology_size': self.random_topology_size,
            'log_level': self.log_level,
        }
