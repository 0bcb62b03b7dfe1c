"""
Main entry point for the CHIP-8 Interpreter.

This module provides the command-line runner: it loads a ROM, runs it
headless on a worker thread for a bounded number of cycles or seconds, and
then prints and/or saves the final frame.
"""

import argparse
import logging
import threading
import sys
from typing import List, Optional

from chip8_interpreter.constants import LOG_LEVELS
from chip8_interpreter.common.visualizer import DisplayVisualizer
from chip8_interpreter.systems.system_factory import SystemFactory
from chip8_interpreter.systems.chip8.errors import Chip8Error
from chip8_interpreter.systems.chip8.keypad import build_key_map, translate_host_key
from chip8_interpreter.utils.config_manager import ConfigManager
from chip8_interpreter.utils.error_handler import error_handler, error_boundary, ErrorCategory
from chip8_interpreter.utils.event_manager import EventManager, EventType

# Console output is configured by the shared error handler
logger = logging.getLogger("Chip8Interpreter")

def build_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser.

    Returns:
        Argument parser
    """
    parser = argparse.ArgumentParser(description="CHIP-8 Interpreter")
    parser.add_argument('rom', type=str, help='Path to ROM file')
    parser.add_argument('--config', type=str, help='Path to JSON or YAML configuration file')

    limit = parser.add_mutually_exclusive_group()
    limit.add_argument('--cycles', type=int, help='Stop after this many cycles')
    limit.add_argument('--seconds', type=float, default=None,
                       help='Stop after this many seconds (default: 5)')

    parser.add_argument('--cycles-per-second', type=float, help='Instruction rate (default: 700)')
    parser.add_argument('--seed', type=int, help='Seed for the CXNN random source')
    parser.add_argument('--hold', type=str, default="",
                        help='Host keys held down for the whole run, e.g. "qw"')
    parser.add_argument('--snapshot', type=str, help='Save the final frame to this PNG path')
    parser.add_argument('--ascii', action='store_true', help='Print the final frame as text')
    parser.add_argument('--trace', action='store_true', help='Log every executed instruction')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    parser.add_argument('--log-level', type=str, choices=LOG_LEVELS[:4],
                       default=None, help='Logging level')
    return parser

@error_boundary(ErrorCategory.DISPLAY)
def save_snapshot(visualizer: DisplayVisualizer, frame, path: str) -> str:
    """Save a frame to PNG; failures are recorded and do not abort the run."""
    return visualizer.plot_display(frame, save_path=path)

def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and run a ROM.

    Args:
        argv: Argument list (None for sys.argv)

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    config = ConfigManager()
    if args.config and not config.load_config(args.config):
        return 1

    # Command-line flags override the configuration file
    if args.cycles_per_second is not None:
        if args.cycles_per_second <= 0:
            error_handler.log_error("--cycles-per-second must be positive",
                                    category=ErrorCategory.CONFIGURATION)
            return 1
        config.set("cpu.cycles_per_second", args.cycles_per_second)
    if args.seed is not None:
        config.set("cpu.rng_seed", args.seed)
    if args.trace:
        config.set("cpu.trace", True)
    if args.log_level:
        config.set("logging.level", args.log_level)

    log_level = getattr(logging, config.get("logging.level", "INFO"))
    if args.debug or args.trace:
        log_level = logging.DEBUG
    error_handler.set_log_levels(log_level)
    if config.get("logging.file"):
        error_handler.set_log_file(config.get("logging.file"))

    events = EventManager()
    events.register_logger([EventType.PROGRAM_LOADED, EventType.CPU_FAULT], logging.DEBUG)

    try:
        system = SystemFactory.create_system(config.get("system", "chip8"),
                                             config.get_system_config(),
                                             event_manager=events)
    except ValueError as e:
        logger.error(f"Error creating system: {e}")
        return 1

    system.reset()
    try:
        system.load_rom(args.rom)
    except OSError as e:
        error_handler.report_rom_failure(args.rom, e)
        return 1

    key_map = config.get("input.key_map")
    key_map = build_key_map(key_map) if key_map else None
    for char in args.hold:
        key = translate_host_key(char, key_map)
        if key is None:
            error_handler.log_warning(f"Host key {char!r} is not mapped, ignoring",
                                      category=ErrorCategory.INPUT)
            continue
        system.key_down(key)

    cancel = threading.Event()
    outcome = {"cycles": 0, "error": None}

    def worker() -> None:
        try:
            outcome["cycles"] = system.run(cancel, max_cycles=args.cycles)
        except Chip8Error as e:
            outcome["error"] = e

    thread = threading.Thread(target=worker, name="chip8-cpu", daemon=True)
    thread.start()

    seconds = args.seconds if args.seconds is not None else (None if args.cycles else 5.0)
    try:
        thread.join(timeout=seconds)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    cancel.set()
    thread.join()

    frame = system.display_buffer()
    if args.ascii:
        print(DisplayVisualizer.to_ascii(frame))
    if args.snapshot:
        visualizer = DisplayVisualizer(scale=config.get("display.scale", 10),
                                       dark_mode=config.get("display.dark_mode", True))
        save_snapshot(visualizer, frame, args.snapshot)

    if outcome["error"] is not None:
        fault = error_handler.last_error(ErrorCategory.HARDWARE)
        print(f"Interpreter stopped: {fault['message'] if fault else outcome['error']}", file=sys.stderr)
        return 1

    logger.info(f"Executed {system.cycle_count} cycles, "
                f"{events.count(EventType.DISPLAY_UPDATE)} display updates")
    return 0

if __name__ == "__main__":
    sys.exit(main())
