"""Scheduler daemon for the daily composite index run.

Uses stdlib ``time``, ``signal`` and ``subprocess`` only.

Typical usage via the CLI::

    acci start-scheduler --daily-time 02:00

Or import directly::

    from ai_commodity_index.scheduler import SchedulerDaemon
    SchedulerDaemon(db_path="data/db/acci.db").start()  # blocks until Ctrl-C

Daily job, at *daily_time* (local HH:MM clock):
  1. ``calculate-index``  — store one composite index snapshot
  2. ``update-accuracy``  — refresh per-period accuracy metrics

Each step runs as a subprocess of the installed CLI, so each has its own
process, logging and exit code. A failed step is logged; the daemon keeps
running and the next step still runs.
"""

from __future__ import annotations

import logging
import platform
import signal
import subprocess
import sys
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

log = logging.getLogger(__name__)

DAILY_STEPS: tuple[str, ...] = ("calculate-index", "update-accuracy")
STEP_TIMEOUT_S = 3600
TICK_SECONDS = 30


# ── Helpers ───────────────────────────────────────────────────────────────────


def _find_cli_exe() -> str:
    """Locate the ``acci`` executable next to the running interpreter."""
    scripts_dir = Path(sys.executable).parent
    name = "acci.exe" if platform.system() == "Windows" else "acci"
    candidate = scripts_dir / name
    if candidate.exists():
        return str(candidate)
    raise RuntimeError(
        f"Could not find the acci executable in {scripts_dir}. Run: pip install -e ."
    )


def next_daily_run(daily_time: str, now: datetime) -> datetime:
    """Return the next datetime after ``now`` whose clock reads ``daily_time``."""
    hour, minute = (int(p) for p in daily_time.split(":"))
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


# ── Daemon ────────────────────────────────────────────────────────────────────


class SchedulerDaemon:
    """Runs the daily index pipeline once per day.

    Parameters
    ----------
    db_path:
        SQLite database file, forwarded to every CLI step.
    daily_time:
        Local 24-hour ``HH:MM`` time for the daily job. Defaults to ``"02:00"``.
    config_path:
        Optional TOML config forwarded to every CLI step.
    cli_exe:
        Full path to the CLI executable. Auto-detected when *None*.
    clock:
        Local-time clock, injectable for tests.
    """

    def __init__(
        self,
        db_path: str,
        daily_time: str = "02:00",
        config_path: Optional[str] = None,
        cli_exe: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.db_path = db_path
        self.daily_time = daily_time
        self.config_path = config_path
        self.cli_exe = cli_exe or _find_cli_exe()
        self._clock = clock
        self._running = False

    def _run_cmd(self, args: list[str], label: str) -> bool:
        """Run one CLI sub-command. Returns ``True`` on exit code 0."""
        cmd = [self.cli_exe] + args + ["--db-path", self.db_path]
        if self.config_path:
            cmd += ["--config", self.config_path]
        log.info("[%s] Running: %s", label, " ".join(cmd))
        try:
            result = subprocess.run(cmd, timeout=STEP_TIMEOUT_S)
        except subprocess.TimeoutExpired:
            log.error("[%s] Timed out after %d s.", label, STEP_TIMEOUT_S)
            return False
        except OSError as exc:
            log.error("[%s] Could not start: %s", label, exc)
            return False
        if result.returncode == 0:
            log.info("[%s] Completed successfully (exit 0).", label)
            return True
        log.error("[%s] Exited with code %d.", label, result.returncode)
        return False

    def run_daily(self) -> dict[str, bool]:
        """Run every daily step in order; returns ``{step: succeeded}``."""
        log.info(
            "=== Daily index job starting at %s ===",
            self._clock().isoformat(timespec="seconds"),
        )
        return {step: self._run_cmd([step], step) for step in DAILY_STEPS}

    def stop(self) -> None:
        self._running = False

    def start(self) -> None:
        """Start the daemon. Blocks until SIGINT (or SIGTERM off Windows)."""
        next_daily = next_daily_run(self.daily_time, self._clock())
        log.info(
            "Scheduler started.  daily_time=%s  db=%s  next=%s",
            self.daily_time, self.db_path, next_daily.isoformat(timespec="seconds"),
        )

        self._running = True

        def _shutdown(signum, frame):  # noqa: ANN001
            log.info("Signal %d received, stopping scheduler.", signum)
            self.stop()

        signal.signal(signal.SIGINT, _shutdown)
        if platform.system() != "Windows":
            signal.signal(signal.SIGTERM, _shutdown)

        while self._running:
            if self._clock() >= next_daily:
                self.run_daily()
                next_daily = next_daily_run(self.daily_time, self._clock())
                log.info("Next daily scheduled: %s", next_daily.isoformat(timespec="seconds"))
            time.sleep(TICK_SECONDS)

        log.info("Scheduler stopped.")
