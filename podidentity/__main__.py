"""Entry point for `python -m podidentity`.

Usage:
    PODIDENTITY_WATCH_CONFIG_FILE=/etc/podidentity/identities.json python -m podidentity
"""

from __future__ import annotations

import asyncio

from podidentity.app import main

asyncio.run(main())
