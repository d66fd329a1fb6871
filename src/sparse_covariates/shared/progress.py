"""Progress line for batched covariate scans.

The aggregator advances it once per covariate batch; the line shows batches
done, covariates summarized, elapsed time and ETA.
"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from typing import TextIO


def _format_seconds(seconds: float) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:d}:{secs:02d}"


@dataclass
class BatchProgress:
    """Single-line progress over `total_batches` covariate batches."""

    label: str
    total_batches: int
    stream: TextIO = field(default_factory=lambda: sys.stderr)
    min_interval: float = 0.1  # seconds between redraws
    batches_done: int = 0
    covariates_done: int = 0
    _started: float = field(default_factory=time.time)
    _last_draw: float = field(default_factory=time.time)

    @property
    def complete(self) -> bool:
        return self.batches_done >= self.total_batches

    def advance(self, n_covariates: int) -> None:
        self.batches_done += 1
        self.covariates_done += n_covariates
        now = time.time()
        if not self.complete and now - self._last_draw < self.min_interval:
            return
        self._last_draw = now
        self.stream.write("\r" + self.render(now))
        self.stream.flush()

    def render(self, now: float) -> str:
        elapsed = now - self._started
        per_batch = elapsed / self.batches_done if self.batches_done else 0.0
        eta = per_batch * max(self.total_batches - self.batches_done, 0)
        return (
            f"{self.label}: batch {self.batches_done}/{self.total_batches} | "
            f"{self.covariates_done} covariates | "
            f"elapsed {_format_seconds(elapsed)} | eta {_format_seconds(eta)}"
        )

    def finish(self) -> None:
        self.stream.write("\n")
        self.stream.flush()
