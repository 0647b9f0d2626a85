# src/chip_core_tracer/cli.py
"""
chip-core-tracer コマンドラインインターフェース。

使用例:
    $ chip-core-tracer run demo.ch8 --max-frames 600
    $ chip-core-tracer run demo.ch8 --seed 1 --trace
    $ chip-core-tracer run --config machine.yaml --show-display

終了コード:
    0  HALT 命令による正常停止（またはフレーム上限への到達）
    1  未定義命令による停止（quit）
    2  引数・ファイル・設定の不正
    3  エンジンの整合性違反（MachineFault）
"""
import logging
import sys
from enum import IntEnum
from pathlib import Path
from typing import Optional, Tuple

import click

from chip_core_tracer.errors import ChipCoreError, ConfigError, MachineFault, ProgramFormatError
from chip_core_tracer.config.loader import ConfigLoader
from chip_core_tracer.config.builder import SystemBuilder
from chip_core_tracer.config.models import SystemConfig
from chip_core_tracer.core.snapshot import Snapshot
from chip_core_tracer.host.runner import HeadlessHost

logger = logging.getLogger(__name__)

class ExitCode(IntEnum):
    HALTED = 0
    QUIT = 1
    INVALID_ARGS = 2
    MACHINE_FAULT = 3

def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

def _echo_trace(snapshot: Snapshot) -> None:
    if snapshot.instruction is not None:
        click.echo(snapshot.metadata.trace_text)

def _render_display(rows) -> str:
    return "\n".join("".join("#" if cell else "." for cell in row) for row in rows)

@click.group()
def main() -> None:
    """QCH 仮想マシンのトレーサー。"""

@main.command()
@click.argument(
    "rom",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-c", "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file.",
)
@click.option("--seed", type=int, default=None, help="Seed for the random number generator.")
@click.option("--max-frames", type=click.IntRange(min=1), default=None, help="Stop after this many frames.")
@click.option("--cycles-per-frame", type=click.IntRange(min=1), default=None, help="Instructions executed per frame.")
@click.option("-k", "--key", "keys", type=click.IntRange(0, 15), multiple=True, help="Hold a keypad key from the start.")
@click.option("--trace", is_flag=True, help="Print every executed instruction.")
@click.option("--show-display", is_flag=True, help="Print the pixel buffer when the run ends.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug).")
def run(
    rom: Optional[Path],
    config_path: Optional[Path],
    seed: Optional[int],
    max_frames: Optional[int],
    cycles_per_frame: Optional[int],
    keys: Tuple[int, ...],
    trace: bool,
    show_display: bool,
    verbose: int,
) -> None:
    """
    ROM を読み込み、ヘッドレスホストで実行します。

    ROM を省略した場合は設定ファイルの program.path を使用します。
    """
    _configure_logging(verbose)

    try:
        config = ConfigLoader().load_from_file(str(config_path)) if config_path else SystemConfig()
    except (OSError, ConfigError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    # コマンドライン指定は設定ファイルより優先
    if seed is not None:
        config.machine.seed = seed
    if cycles_per_frame is not None:
        config.host.cycles_per_frame = cycles_per_frame
    if max_frames is not None:
        config.host.max_frames = max_frames
    if keys:
        config.keys = sorted(set(config.keys) | set(keys))
    config.trace = config.trace or trace

    program_path = str(rom) if rom else config.program.path
    if not program_path:
        click.echo("Error: no ROM given and no program.path configured.", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    try:
        cpu, _ = SystemBuilder().build_system(config, program_path)
    except (OSError, ProgramFormatError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if config.trace:
        cpu.add_trace_hook(_echo_trace)

    logger.info("Running %s (seed=%s, %d cycles per frame)", program_path, config.machine.seed, config.host.cycles_per_frame)

    host = HeadlessHost(cpu, cycles_per_frame=config.host.cycles_per_frame)
    try:
        host.run(config.host.max_frames)
    except MachineFault as e:
        click.echo(f"Machine fault: {e}", err=True)
        sys.exit(ExitCode.MACHINE_FAULT)
    except ChipCoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.MACHINE_FAULT)

    state = cpu.get_state()
    if show_display:
        click.echo(_render_display(state.display.rows()))

    if state.quit:
        click.echo(f"Quit: unknown instruction at {state.pc:#05x} after {cpu.cycle_count} cycles.", err=True)
        sys.exit(ExitCode.QUIT)
    if state.halted:
        click.echo(f"Halted at {state.pc:#05x} after {cpu.cycle_count} cycles.")
    elif state.blocking:
        click.echo(f"Blocked waiting for a key at {state.pc:#05x} after {host.frame} frames ({cpu.cycle_count} cycles).")
    else:
        seconds = host.frame / config.host.frame_rate
        click.echo(f"Stopped after {host.frame} frames ({cpu.cycle_count} cycles, {seconds:.2f}s of machine time).")
    sys.exit(ExitCode.HALTED)
