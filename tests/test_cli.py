import pytest
from click.testing import CliRunner

from chip_core_tracer.cli import main

def words(*program):
    return b"".join(w.to_bytes(2, "big") for w in program)

@pytest.fixture
def runner():
    return CliRunner()

@pytest.fixture
def rom(tmp_path):
    def write(*program, name="demo.ch8"):
        path = tmp_path / name
        path.write_bytes(words(*program))
        return str(path)
    return write

def test_halt_exits_zero(runner, rom):
    result = runner.invoke(main, ["run", rom(0x6005, 0x7003, 0xFFFF)])
    assert result.exit_code == 0
    assert "Halted at 0x204 after 3 cycles." in result.output

def test_unknown_instruction_exits_one(runner, rom):
    result = runner.invoke(main, ["run", rom(0x0123)])
    assert result.exit_code == 1

def test_missing_rom_exits_two(runner, tmp_path):
    result = runner.invoke(main, ["run", str(tmp_path / "missing.ch8")])
    assert result.exit_code == 2

def test_no_rom_and_no_config_exits_two(runner):
    result = runner.invoke(main, ["run"])
    assert result.exit_code == 2

def test_bad_config_exits_two(runner, rom, tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("host:\n  cycles_per_frame: -1\n")
    result = runner.invoke(main, ["run", rom(0xFFFF), "--config", str(config)])
    assert result.exit_code == 2

def test_machine_fault_exits_three(runner, rom):
    result = runner.invoke(main, ["run", rom(0x00EE)])
    assert result.exit_code == 3
    assert "Machine fault" in result.output

def test_trace_prints_each_instruction(runner, rom):
    result = runner.invoke(main, ["run", rom(0x6005, 0xFFFF), "--trace"])
    assert result.exit_code == 0
    assert "0x0200 6005 LD V0, #$05" in result.output
    assert "0x0202 FFFF HALT" in result.output

def test_max_frames_bounds_infinite_loop(runner, rom):
    result = runner.invoke(main, ["run", rom(0x1200), "--max-frames", "3", "--cycles-per-frame", "2"])
    assert result.exit_code == 0
    assert "Stopped after 3 frames (6 cycles, 0.05s of machine time)." in result.output

def test_config_supplies_program_and_keys(runner, rom, tmp_path):
    path = rom(0xF10A, 0xFFFF)
    config = tmp_path / "machine.yaml"
    config.write_text(f"program:\n  path: {path}\nkeys: [4]\nhost:\n  max_frames: 10\n")

    result = runner.invoke(main, ["run", "--config", str(config)])

    assert result.exit_code == 0
    assert "Halted" in result.output

def test_show_display(runner, rom):
    result = runner.invoke(main, ["run", rom(0xA050, 0xD001, 0xFFFF), "--show-display"])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].startswith("####....")
    assert len(lines[0]) == 64

def test_wait_key_without_held_key_returns(runner, rom):
    result = runner.invoke(main, ["run", rom(0xF30A, 0xFFFF)])
    assert result.exit_code == 0
    assert "Blocked waiting for a key at 0x202 after 1 frames (1 cycles)." in result.output

def test_scalar_keys_in_config_exits_two(runner, rom, tmp_path):
    config = tmp_path / "bad_keys.yaml"
    config.write_text("keys: 5\n")
    result = runner.invoke(main, ["run", rom(0xFFFF), "--config", str(config)])
    assert result.exit_code == 2
    assert "'keys' must be a list." in result.output
