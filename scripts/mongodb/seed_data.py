#!/usr/bin/env python3
"""
Insert example documents into the worker collections.

IMPORTANT: development/testing only. Run init_collections.py first.

Usage:
    python scripts/mongodb/seed_data.py               # Insert (duplicates are reported)
    python scripts/mongodb/seed_data.py --clean --yes # Empty the collections first
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from src.cli.main import app


def main() -> None:
    app(["db", "seed", *sys.argv[1:]])


if __name__ == "__main__":
    main()
