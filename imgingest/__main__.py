"""
Main entry point for running the package as a module.

Usage:
    python -m imgingest ingest photo1.jpg photo2.png --output-dir ./uploads
    python -m imgingest inspect photo.jpg --max-width 800 --rotate 90
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
