"""Entry point for `python -m kubemcp`.

Usage:
    python -m kubemcp
    KUBEMCP_TRANSPORT=http python -m kubemcp
"""

from __future__ import annotations

import asyncio

from kubemcp.app import main

asyncio.run(main())
