"""
Main entry point for running audiotag as a module.
Allows: python -m audiotag ...
"""
import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
