"""
Run logging: stdout/stderr are tee'd into timestamped per-run files.

Status lines throughout the package are plain `print` calls; once
`setup_logging()` has run, each line also lands in `<LOG_DIR>/<run>.out.log`
(or `.err.log` for stderr, where lines are labelled "ERR:") with a
`[YYYY-mm-dd HH:MM:SS]` prefix.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from . import config


class TimestampedTee:
    """
    File-like wrapper that mirrors writes to the console stream and a run log.

    Every line that starts gets one `[YYYY-mm-dd HH:MM:SS] ` stamp, plus the
    tee's label when it has one (stderr is labelled "ERR" so the two streams
    stay distinguishable when they end up interleaved on a terminal).
    """

    def __init__(self, stream, log_file, label: str = "", clock: Callable[[], datetime] = datetime.now):
        self.stream = stream
        self.log_file = log_file
        self.label = label
        self.clock = clock
        self._mid_line = False

    def _stamp(self) -> str:
        ts = self.clock().strftime("%Y-%m-%d %H:%M:%S")
        return f"[{ts}] {self.label}: " if self.label else f"[{ts}] "

    def write(self, data: str) -> int:
        if not data:
            return 0
        pieces = []
        for line in data.splitlines(True):
            if not self._mid_line:
                pieces.append(self._stamp())
            pieces.append(line)
            self._mid_line = not line.endswith("\n")
        stamped = "".join(pieces)
        for sink in (self.stream, self.log_file):
            sink.write(stamped)
            sink.flush()
        # Report what the caller handed us, not the stamped length.
        return len(data)

    def flush(self) -> None:
        self.stream.flush()
        self.log_file.flush()

    def isatty(self) -> bool:
        return self.stream.isatty()

    def close(self) -> None:
        """Close the run log only; the console stream belongs to the process."""
        self.log_file.close()


def cleanup_old_logs(log_dir: Path, retention_days: int, now: Optional[datetime] = None) -> int:
    """Delete `*.log` files older than `retention_days`. Returns how many went."""
    cutoff = (now or datetime.now()) - timedelta(days=retention_days)
    removed = 0
    for path in log_dir.glob("*.log"):
        try:
            if datetime.fromtimestamp(path.stat().st_mtime) < cutoff:
                path.unlink()
                removed += 1
        except OSError:
            # Files can vanish or be locked by another run.
            continue
    return removed


def setup_logging(log_dir: Optional[Path] = None, retention_days: Optional[int] = None) -> Path:
    """Install the tees on sys.stdout / sys.stderr and return the log directory."""
    log_dir = Path(log_dir or config.LOG_DIR)
    retention_days = config.LOG_RETENTION_DAYS if retention_days is None else retention_days

    log_dir.mkdir(parents=True, exist_ok=True)
    run_ts = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    out_handle = (log_dir / f"{run_ts}.out.log").open("a", encoding="utf-8")
    err_handle = (log_dir / f"{run_ts}.err.log").open("a", encoding="utf-8")

    sys.stdout = TimestampedTee(sys.stdout, out_handle)
    sys.stderr = TimestampedTee(sys.stderr, err_handle, label="ERR")

    cleanup_old_logs(log_dir, retention_days)
    return log_dir
