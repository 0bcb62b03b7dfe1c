"""
Main entry point for the CHIP-8 Interpreter package.

This module allows the package to be run as a module using:
python -m chip8_interpreter [args]
"""

import sys

from chip8_interpreter.main import main

if __name__ == "__main__":
    sys.exit(main())
