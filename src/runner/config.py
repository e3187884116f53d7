"""
config.py - Configuration dataclass for parallel curve tessellation runs.

Multiprocessing machinery pickles it, passes it to each pool worker
initializer, and the worker configures its own logging from it.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple


def default_processes() -> int:
    """Use three quarters of the available cores, at least one."""
    total_cores = os.cpu_count() or 1
    return max(1, int(total_cores * 0.75))


@dataclass(frozen=True)
class RunnerConfig:
    """Immutable configuration shared by the driver and its worker processes."""
    logger_level: int = logging.INFO
    processes: int = field(default_factory=default_processes)
    chunk_size: int = 256
    output_dir: Path = Path("./out")
    log_dir: Optional[Path] = Path("./logs")
    preview_size: Tuple[int, int] = (1024, 1024)
    dpi: int = 100

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}.")
        if self.processes < 1:
            raise ValueError(f"processes must be >= 1, got {self.processes}.")
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        if self.log_dir is not None:
            object.__setattr__(self, "log_dir", Path(self.log_dir))
        # Ensure paths exist for safety
        self.output_dir.mkdir(parents=True, exist_ok=True)
