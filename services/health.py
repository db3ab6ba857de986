"""
Health probe endpoints for liveness and readiness checks.

Liveness  (/health/live) : is the process running?
Readiness (/health/ready): can it serve requests? (songs root usable)
"""

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


@dataclass
class CheckResult:
    healthy: bool
    message: str
    details: Optional[Dict] = field(default=None)


class HealthChecker:
    """Liveness and readiness health checks."""

    def __init__(self, songs_dir: Path):
        self.songs_dir = Path(songs_dir)
        self.start_time = time.time()

    def liveness(self) -> CheckResult:
        """Liveness probe: always 200 if the process is alive."""
        return CheckResult(
            healthy=True,
            message="Process is running",
            details={"uptime_seconds": round(time.time() - self.start_time, 1)},
        )

    def readiness(self) -> CheckResult:
        """Readiness probe: 200 only when the songs root is a writable directory."""
        storage = _check_songs_dir(self.songs_dir)
        return CheckResult(
            healthy=storage.healthy,
            message="All checks passed" if storage.healthy else "One or more checks failed",
            details={"storage": storage.__dict__},
        )


def _check_songs_dir(songs_dir: Path) -> CheckResult:
    """Check that the songs root exists and can be written to."""
    if not songs_dir.is_dir():
        return CheckResult(healthy=False, message=f"Songs directory missing: {songs_dir}")
    if not os.access(songs_dir, os.W_OK):
        return CheckResult(healthy=False, message=f"Songs directory not writable: {songs_dir}")
    return CheckResult(healthy=True, message="Songs directory ready")
