#!/usr/bin/env python3
"""
ARP/RARP Simulator Demo Script

Runs a simulation from the command line and prints every step.

Usage:
    python demo.py --list-devices
    python demo.py --mode arp --device device-1
    python demo.py --mode rarp --device device-3 --fast
    python demo.py --mode both --randomize
"""

import argparse
import sys
import threading
from typing import Optional

from config.settings import SimulationConfig, configure_logging
from core.device_registry import DeviceRegistry
from core.storage import JSONFileStore
from orchestration.engine import SimulationEngine
from orchestration.scheduler import ManualClock
from orchestration.state import SimulationMode, SimulationSnapshot
from utils.console import ConsoleRenderer, format_cache_table, format_device_table


def print_banner():
    """Print welcome banner"""
    print("""
╔════════════════════════════════════════════════════════════════╗
║                   ARP / RARP SIMULATOR                         ║
║                                                                ║
║  Step through address resolution on a simulated network        ║
╚════════════════════════════════════════════════════════════════╝
    """)


def list_devices(engine: SimulationEngine):
    """List devices in the registry"""
    print("\nNetwork Devices:")
    print("-" * 72)
    print(format_device_table(engine.registry.devices()))
    print()


def run_simulation(engine: SimulationEngine, mode: SimulationMode, device_id: str,
                   clock: Optional[ManualClock] = None, timeout: float = 60.0) -> bool:
    """
    Run one simulation to completion

    Args:
        engine: Engine to drive
        mode: Protocol mode
        device_id: Device to select
        clock: Manual clock to advance instead of waiting (fast mode)
        timeout: Seconds to wait in real-time mode

    Returns:
        True if the run completed.
    """
    print("\n" + "=" * 50)
    print(f"  SIMULATION: {mode.value}")
    print("=" * 50)

    finished = threading.Event()

    def watch(snapshot: SimulationSnapshot):
        if snapshot.state.is_complete:
            finished.set()

    engine.subscribe(watch)
    try:
        engine.select_mode(mode)
        if not engine.select_device(device_id) or not engine.start():
            return False

        if clock is not None:
            clock.run_until_idle()
        else:
            finished.wait(timeout)
    finally:
        engine.unsubscribe(watch)

    if not finished.is_set():
        print("✗ Simulation did not complete")
        return False

    print("\nARP Cache:")
    print(format_cache_table(engine.cache.entries()))
    print(f"✓ {mode.value} simulation complete")
    return True


def pick_device(engine: SimulationEngine, requested: Optional[str]) -> Optional[str]:
    """Requested device id, or the first endpoint in the registry"""
    if requested:
        return requested
    for device in engine.registry.devices():
        if not device.is_relay:
            return device.id
    return None


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="ARP/RARP Simulator Demo",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument("-m", "--mode", choices=["arp", "rarp", "both"], default="arp",
                        help="Protocol to simulate ('both' runs ARP then RARP)")
    parser.add_argument("-d", "--device",
                        help="Device id to select (default: first endpoint)")
    parser.add_argument("--list-devices", action="store_true",
                        help="List devices and exit")
    parser.add_argument("--randomize", action="store_true",
                        help="Generate a random topology before running")
    parser.add_argument("--store",
                        help="Path of the device store file")
    parser.add_argument("--config",
                        help="YAML file with configuration overrides")
    parser.add_argument("--delay-ms", type=int,
                        help="Delay between phases in milliseconds")
    parser.add_argument("--fast", action="store_true",
                        help="Use a virtual clock instead of waiting")
    parser.add_argument("--export-log",
                        help="Write the activity log to this file (.json or .csv)")
    parser.add_argument("--no-frames", action="store_true",
                        help="Do not print frame summaries")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only print warnings and errors from the logger")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging")

    args = parser.parse_args(argv)

    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    if args.store:
        config.store_path = args.store
    if args.delay_ms is not None:
        config.phase_delay_ms = args.delay_ms
    if not config.is_valid:
        print(f"Error: invalid configuration {config.to_dict()}")
        return 1

    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("WARNING")
    else:
        configure_logging(config.log_level)

    registry = DeviceRegistry(
        store=JSONFileStore(config.store_path),
        storage_key=config.storage_key,
        random_size=config.random_topology_size
    )
    clock = ManualClock() if args.fast else None
    engine = SimulationEngine(registry=registry, backend=clock, config=config)

    print_banner()

    if args.randomize:
        engine.generate_random_topology()

    if args.list_devices:
        list_devices(engine)
        return 0

    renderer = ConsoleRenderer(show_frames=not args.no_frames)
    engine.subscribe(renderer)

    modes = [SimulationMode.FORWARD, SimulationMode.REVERSE] if args.mode == "both" \
        else [SimulationMode.parse(args.mode)]

    device_id = pick_device(engine, args.device)
    if device_id is None:
        print("Error: no endpoint available")
        return 1

    timeout = 3 * config.phase_delay_ms / 1000.0 + 5
    ok = True
    try:
        for mode in modes:
            ok = run_simulation(engine, mode, device_id, clock=clock, timeout=timeout) and ok
    except KeyboardInterrupt:
        print("\n\nSimulation interrupted by user")
        engine.reset()
        return 130
    finally:
        renderer.close()

    if args.export_log:
        if args.export_log.endswith(".csv"):
            engine.activity.export_csv(args.export_log)
        else:
            engine.activity.export_json(args.export_log)
        print(f"Activity log saved to {args.export_log}")

    list_devices(engine)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
