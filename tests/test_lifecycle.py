from core.models import Packet, PacketType
from orchestration.lifecycle import PacketLifecycleManager, Phase
from orchestration.scheduler import ManualClock, PhaseScheduler


def make_manager():
    clock = ManualClock()
    manager = PacketLifecycleManager(PhaseScheduler(clock))
    return clock, manager


def packet_factory(manager, packet_type):
    def build():
        return Packet(
            id=manager.next_packet_id(packet_type),
            packet_type=packet_type,
            source_ip="10.0.0.1",
            source_mac="00:00:00:00:00:01"
        )
    return build


def test_phases_fire_in_order_after_their_delays():
    clock, manager = make_manager()
    events = []
    phases = [
        Phase("one", 100, lambda p: events.append(("one", clock.now_ms, p.packet_type)),
              packet_factory(manager, PacketType.ARP_REQUEST)),
        Phase("two", 50, lambda p: events.append(("two", clock.now_ms, p.packet_type)),
              packet_factory(manager, PacketType.ARP_REPLY)),
        Phase("three", 200, lambda p: events.append(("three", clock.now_ms, p))),
    ]
    finished = []
    manager.run(phases, on_finished=lambda: finished.append(clock.now_ms))

    clock.advance(1000)
    assert events == [
        ("one", 100, PacketType.ARP_REQUEST),
        ("two", 150, PacketType.ARP_REPLY),
        ("three", 350, None),
    ]
    assert finished == [350]


def test_next_phase_retires_previous_packet():
    clock, manager = make_manager()
    phases = [
        Phase("one", 100, lambda p: None, packet_factory(manager, PacketType.RARP_REQUEST)),
        Phase("two", 100, lambda p: None, packet_factory(manager, PacketType.RARP_REPLY)),
    ]
    manager.run(phases)

    clock.advance(100)
    first = manager.active_packets()
    assert [p.packet_type for p in first] == [PacketType.RARP_REQUEST]
    assert first[0].id.startswith("rarp-request-")

    clock.advance(100)
    assert [p.packet_type for p in manager.active_packets()] == [PacketType.RARP_REPLY]
    assert manager.get(first[0].id) is None


def test_packet_listener_sees_each_packet():
    clock = ManualClock()
    exposed = []
    manager = PacketLifecycleManager(PhaseScheduler(clock), on_packet=exposed.append)
    manager.run([Phase("one", 10, lambda p: None, packet_factory(manager, PacketType.ARP_REQUEST))])
    clock.advance(10)
    assert len(exposed) == 1
    assert exposed[0].is_active


def test_cancel_all_prevents_later_arrivals():
    clock, manager = make_manager()
    arrived = []
    phases = [
        Phase("one", 100, arrived.append, packet_factory(manager, PacketType.ARP_REQUEST)),
        Phase("two", 100, arrived.append, packet_factory(manager, PacketType.ARP_REPLY)),
    ]
    finished = []
    manager.run(phases, on_finished=lambda: finished.append(True))
    clock.advance(100)
    assert len(arrived) == 1

    manager.cancel_all()
    assert manager.active_packets() == ()
    clock.advance(1000)
    assert len(arrived) == 1
    assert finished == []


def test_arrival_handler_can_cancel_the_run():
    clock, manager = make_manager()
    arrived = []

    def cancel(packet):
        arrived.append("one")
        manager.cancel_all()

    manager.run([
        Phase("one", 10, cancel),
        Phase("two", 10, lambda p: arrived.append("two")),
    ])
    clock.advance(100)
    assert arrived == ["one"]


def test_progress_is_clamped_and_completion_disposes():
    clock, manager = make_manager()
    manager.run([Phase("one", 0, lambda p: None, packet_factory(manager, PacketType.ARP_REQUEST))])
    clock.advance(0)
    packet = manager.active_packets()[0]

    assert manager.update_progress(packet.id, 42.7).progress == 42
    assert manager.update_progress(packet.id, 250).progress == 100
    assert manager.update_progress("unknown", 10) is None

    assert manager.complete(packet.id)
    assert not manager.complete(packet.id)
    assert manager.active_packets() == ()


def test_empty_script_finishes():
    clock, manager = make_manager()
    finished = []
    manager.run([], on_finished=lambda: finished.append(True))
    clock.advance(0)
    assert finished == [True]
