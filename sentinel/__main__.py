"""Entry point for `python -m sentinel`.

Usage:
    python -m sentinel
    uv run python -m sentinel
"""

from __future__ import annotations

import asyncio

from sentinel.app import main

asyncio.run(main())
