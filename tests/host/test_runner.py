import pytest

from chip_core_tracer.transport.bus import Bus, RAM
from chip_core_tracer.arch.qch.cpu import QchCpu
from chip_core_tracer.host.runner import HeadlessHost

def words(*program):
    return b"".join(w.to_bytes(2, "big") for w in program)

@pytest.fixture
def cpu():
    bus = Bus()
    bus.register_device(0x000, 0xFFF, RAM(0x1000))
    return QchCpu(bus, seed=3)

def test_rejects_non_positive_cycles(cpu):
    with pytest.raises(ValueError):
        HeadlessHost(cpu, cycles_per_frame=0)

def test_frame_runs_cycles_then_ticks_timers(cpu):
    # DT = 5 の後は無限ループ
    cpu.get_bus().load(0x200, words(0x6005, 0xF015, 0x1204))
    host = HeadlessHost(cpu, cycles_per_frame=4)

    result = host.run_frame()

    assert result.frame == 1
    assert result.cycles == 4
    assert cpu.get_state().delay_timer == 4
    assert not result.terminal

def test_frame_stops_early_on_halt(cpu):
    cpu.get_bus().load(0x200, words(0x6005, 0xFFFF, 0x0000))
    host = HeadlessHost(cpu, cycles_per_frame=10)

    result = host.run_frame()

    assert result.cycles == 2
    assert result.halted
    assert result.terminal

def test_draw_flag_captured_and_cleared(cpu):
    cpu.get_bus().load(0x200, words(0x00E0, 0x1202))
    host = HeadlessHost(cpu, cycles_per_frame=2)

    assert host.run_frame().drew is True
    assert host.run_frame().drew is False

def test_sound_reported_while_timer_runs(cpu):
    cpu.get_bus().load(0x200, words(0x6002, 0xF018, 0x1204))
    host = HeadlessHost(cpu, cycles_per_frame=3)

    first = host.run_frame()
    second = host.run_frame()

    assert first.sound_active
    assert not second.sound_active

# @intent:test_case_blocking キー入力待ちの間は命令を実行せず、キー押下後のフレームで解除されることを検証します。
def test_blocking_frame_waits_for_key(cpu):
    cpu.get_bus().load(0x200, words(0xF20A, 0xFFFF))
    host = HeadlessHost(cpu, cycles_per_frame=5)

    result = host.run_frame()
    assert result.blocking
    assert result.cycles == 1

    result = host.run_frame()
    assert result.blocking
    assert result.cycles == 0

    host.press(9)
    result = host.run_frame()
    assert not result.blocking
    assert cpu.get_state().v[2] == 9

    host.release(9)
    result = host.run_frame()
    assert result.halted

def test_run_until_halt(cpu):
    cpu.get_bus().load(0x200, words(0x6005, 0x7003, 0xFFFF))
    host = HeadlessHost(cpu, cycles_per_frame=1)

    result = host.run()

    assert result.halted
    assert host.frame == 3
    assert cpu.get_state().v[0] == 8

def test_run_respects_frame_bound(cpu):
    cpu.get_bus().load(0x200, words(0x1200))
    host = HeadlessHost(cpu, cycles_per_frame=7)

    result = host.run(max_frames=5)

    assert result.frame == 5
    assert cpu.cycle_count == 35
    assert not result.terminal

def test_run_on_terminal_machine_does_nothing(cpu):
    cpu.get_bus().load(0x200, words(0xFFFF))
    host = HeadlessHost(cpu)
    host.run()
    assert host.run() is None

# @intent:test_case_blocking キー入力待ちで押下中のキーが無い場合、上限なしの run() でも停止することを検証します。
def test_run_stops_when_waiting_with_no_key_held(cpu, caplog):
    cpu.get_bus().load(0x200, words(0xF30A, 0xFFFF))
    host = HeadlessHost(cpu)

    with caplog.at_level("WARNING", logger="chip_core_tracer.host.runner"):
        result = host.run(max_frames=None)

    assert result.blocking
    assert not result.terminal
    assert host.frame == 1
    assert cpu.get_state().pc == 0x202
    assert "no key held" in caplog.text

def test_run_resolves_wait_with_held_key(cpu):
    cpu.get_bus().load(0x200, words(0xF30A, 0xFFFF))
    host = HeadlessHost(cpu)
    host.press(6)

    result = host.run()

    assert result.halted
    assert cpu.get_state().v[3] == 6
