"""checklog — incremental regex log scanner for Nagios-style monitoring."""
from __future__ import annotations

__version__ = "1.0.0"
