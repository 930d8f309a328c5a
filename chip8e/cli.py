"""Command line entry point."""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .app import Chip8Emulator
from .config import EmulatorConfig, parse_int
from .disasm import disassemble_rom
from .errors import Chip8Error, ConfigurationError, ExecutionError
from .state import read_rom_file

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s]:  %(message)s"


def _int_arg(value: str) -> int:
    try:
        return parse_int(value)
    except ConfigurationError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8e", description="chip8e - A simple CHIP-8 emulator")
    parser.add_argument("--file", dest="rom_path", metavar="FILE", help="The ROM file name to emulate")
    parser.add_argument("--fore-color", type=_int_arg, metavar="COLOR", help="Window foreground color")
    parser.add_argument("--back-color", type=_int_arg, metavar="COLOR", help="Window background color")
    parser.add_argument("--frame-after", type=_int_arg, metavar="N",
                        help="How many cycles to run between presents")
    parser.add_argument("--copy-delay", type=_int_arg, metavar="MS",
                        help="Delay in ms between one present and the next")
    parser.add_argument("--window-width", type=_int_arg, metavar="SIZE", help="Set window width")
    parser.add_argument("--window-height", type=_int_arg, metavar="SIZE", help="Set window height")
    parser.add_argument("--fallback-render", action="store_true", help="Use the software renderer")
    parser.add_argument("--beep", dest="beep_path", metavar="WAV", help="WAV file played when the sound timer expires")
    parser.add_argument("--mute", action="store_true", help="Disable audio")
    parser.add_argument("--seed", type=_int_arg, help="Seed for the RND instruction (default: time based)")
    parser.add_argument("--blocking-key-wait", action="store_true",
                        help="Make FX0A wait for a key press instead of continuing")
    parser.add_argument("--disassemble", action="store_true", help="Print the ROM listing and exit")
    parser.add_argument("--debug", action="store_true", help="Log every executed instruction")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> EmulatorConfig:
    """Build a validated config, leaving defaults where no option was given"""
    options = {k: v for k, v in vars(args).items()
               if k in EmulatorConfig.__dataclass_fields__ and v is not None}
    return EmulatorConfig(**options).validate()


def setup_logging(debug: bool = False):
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO,
                        format=LOG_FORMAT, stream=sys.stdout)


def print_banner():
    print("chip8e - A simple CHIP-8 emulator")
    print()
    print("Controls:")
    print("  CHIP-8 Keypad: 1234 / QWER / ASDF / ZXCV")
    print("  ESC = Exit")
    print()


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.debug)

    emu = None
    try:
        config = config_from_args(args)
        if args.disassemble:
            for line in disassemble_rom(read_rom_file(config.rom_path)):
                print(line)
            return 0

        print_banner()
        emu = Chip8Emulator(config)
        emu.run()
    except ExecutionError as e:
        logger.error("The emulator crashed: %s", e)
        if emu is not None:
            logger.error("CPU state:\n%s", emu.cpu)
        sys.exit(f"Error: {e}")
    except Chip8Error as e:
        logger.error("%s", e)
        sys.exit(f"Error: {e}")
    return 0


if __name__ == "__main__":
    main()
