#!/usr/bin/env python3
"""Run the analytics rollup sync from a checkout (same commands as `indeks-sync`)."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from indeks.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
