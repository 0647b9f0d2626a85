import pytest

from chip_core_tracer.errors import KeyIndexError, MemoryAccessError
from chip_core_tracer.transport.bus import Bus, RAM
from chip_core_tracer.arch.qch.state import QchCpuState
from chip_core_tracer.arch.qch.instructions import decode_word, execute_instruction

@pytest.fixture
def machine():
    bus = Bus()
    bus.register_device(0x000, 0xFFF, RAM(0x1000))
    return QchCpuState(), bus

def run(machine, word):
    state, bus = machine
    execute_instruction(decode_word(word, state.pc), state, bus)
    return state

class TestDraw:
    """
    DRW命令のXOR描画、衝突判定、端での折り返しと切り捨ての検証。
    """
    def test_draw_sets_pixels_and_draw_flag(self, machine):
        state, bus = machine
        bus.load(0x300, b"\xC0\x80")
        state.i = 0x300
        state.v[1], state.v[2] = 3, 4
        run(machine, 0xD122)

        display = state.display
        assert display.get_pixel(3, 4) == 1
        assert display.get_pixel(4, 4) == 1
        assert display.get_pixel(3, 5) == 1
        assert display.get_pixel(4, 5) == 0
        assert display.lit_count() == 3
        assert state.v[0xF] == 0
        assert state.draw
        assert state.pc == 0x202

    # @intent:test_case_xor 同じスプライトを2回描画すると元に戻り、2回目は衝突となることを検証します。
    def test_draw_twice_restores_buffer(self, machine):
        state, bus = machine
        bus.load(0x300, b"\xF0\x90\xF0")
        state.i = 0x300
        state.v[1], state.v[2] = 10, 10
        before = state.display.to_bytes()

        run(machine, 0xD123)
        assert state.v[0xF] == 0
        assert state.display.to_bytes() != before

        run(machine, 0xD123)
        assert state.v[0xF] == 1
        assert state.display.to_bytes() == before

    def test_origin_wraps_and_edges_clip(self, machine):
        state, bus = machine
        bus.load(0x300, b"\xFF\xFF")
        state.i = 0x300
        state.v[1], state.v[2] = 64 + 60, 31  # x は 60 に折り返す
        run(machine, 0xD122)

        display = state.display
        assert [display.get_pixel(x, 31) for x in range(60, 64)] == [1, 1, 1, 1]
        assert display.get_pixel(0, 31) == 0
        assert display.get_pixel(60, 0) == 0
        assert display.lit_count() == 4

    def test_draw_uses_resized_geometry(self, machine):
        state, bus = machine
        state.display.resize(8, 4)
        bus.load(0x300, b"\x80")
        state.i = 0x300
        state.v[1], state.v[2] = 9, 5
        run(machine, 0xD121)
        assert state.display.get_pixel(1, 1) == 1

    def test_sprite_read_past_memory_is_fatal(self, machine):
        state, _ = machine
        state.i = 0xFFF
        with pytest.raises(MemoryAccessError):
            run(machine, 0xD002)

    def test_cls(self, machine):
        state, _ = machine
        state.display.toggle(0, 0)
        run(machine, 0x00E0)
        assert state.display.lit_count() == 0
        assert state.draw
        assert state.pc == 0x202

class TestKeys:
    @pytest.mark.parametrize("held, skp_pc, sknp_pc", [(True, 0x204, 0x202), (False, 0x202, 0x204)])
    def test_key_skips(self, machine, held, skp_pc, sknp_pc):
        state, _ = machine
        state.v[1] = 0xA
        state.keys[0xA] = held
        run(machine, 0xE19E)
        assert state.pc == skp_pc

        state.pc = 0x200
        run(machine, 0xE1A1)
        assert state.pc == sknp_pc

    def test_key_index_out_of_range_is_fatal(self, machine):
        state, _ = machine
        state.v[1] = 16
        with pytest.raises(KeyIndexError):
            run(machine, 0xE19E)

    def test_wait_key_blocks_after_advancing(self, machine):
        state = run(machine, 0xF70A)
        assert state.blocking
        assert state.key_target == 7
        assert state.pc == 0x202

class TestTimers:
    def test_write_and_read_delay(self, machine):
        state, _ = machine
        state.v[2] = 30
        run(machine, 0xF215)
        assert state.delay_timer == 30
        run(machine, 0xF307)
        assert state.v[3] == 30

    def test_write_sound(self, machine):
        state, _ = machine
        state.v[2] = 2
        run(machine, 0xF218)
        assert state.sound_timer == 2
        assert state.sound_active
        state.tick_timers()
        state.tick_timers()
        state.tick_timers()
        assert state.sound_timer == 0
        assert not state.sound_active
