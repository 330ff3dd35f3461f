"""Module entrypoint.

Allows:
    python -m winlog_aggregator
"""

from __future__ import annotations

from winlog_aggregator.server.log_server import main

if __name__ == "__main__":
    main()
