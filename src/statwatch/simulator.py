"""Stats-dump producer for demos and end-to-end tests.

Stands in for a simulator that periodically flushes its statistics to
a text file. Each dump is appended so every write raises one modify
event on the watched path.
"""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path

logger = logging.getLogger(__name__)

_STAT_NAMES = [
    "sim_seconds", "sim_ticks", "host_inst_rate", "host_mem_usage",
    "system.cpu.numCycles", "system.cpu.committedInsts", "system.mem_ctrls.readReqs",
]


class StatsDumpSimulator:
    """Appends a stats dump block to *path* on each tick.

    With ``dump_bytes`` set the block is exactly that many bytes of
    filler, which keeps event counts easy to reason about in tests.
    """

    def __init__(
        self,
        path: str | Path,
        interval: float = 1.0,
        dump_bytes: int | None = None,
        seed: int | None = None,
    ) -> None:
        self.path = Path(path)
        self.interval = interval
        self.dump_bytes = dump_bytes
        self.dumps = 0
        self._rng = random.Random(seed)

    def _render(self) -> str:
        if self.dump_bytes is not None:
            return "x" * self.dump_bytes
        lines = ["---------- Begin Simulation Statistics ----------"]
        for name in _STAT_NAMES:
            lines.append(f"{name:<40} {self._rng.randint(0, 10**9):>16}")
        lines.append("---------- End Simulation Statistics   ----------")
        return "\n".join(lines) + "\n"

    def write_dump(self) -> int:
        """Append one dump and return the number of bytes written."""
        data = self._render()
        with self.path.open("a") as f:
            f.write(data)
        self.dumps += 1
        logger.debug("Dump %d written to %s (%d bytes)", self.dumps, self.path, len(data))
        return len(data)

    def run(self, count: int | None = None) -> None:
        """Write *count* dumps (forever when None), sleeping between them."""
        logger.info("Writing stats dumps to %s every %.1fs", self.path, self.interval)
        while count is None or self.dumps < count:
            self.write_dump()
            if count is not None and self.dumps >= count:
                break
            time.sleep(self.interval)
