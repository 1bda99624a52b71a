"""
Main entry point for the Face Metrics Tool

Provides command-line access via ``python -m face_metrics``.
"""

import sys
from .ui.cli import main

if __name__ == '__main__':
    sys.exit(main())
