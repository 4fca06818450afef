"""
Shared rich console for operator output.

The console records everything it prints so a run transcript can be saved
to the log directory afterwards.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console

console = Console(record=True)


def save_run_log(log_dir: Path, timestamp: Optional[datetime] = None) -> Path:
    """Write the recorded console output to logs/scrape-<timestamp>.log."""
    timestamp = timestamp or datetime.now()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"scrape-{timestamp.strftime('%Y%m%d-%H%M%S')}.log"
    console.save_text(str(log_path), clear=True)
    return log_path
