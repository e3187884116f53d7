from .config import RunnerConfig
from .logging_utils import configure_logging, ColorFormatter
from .orchestration import run_parallel

__all__ = [
    "RunnerConfig",
    "configure_logging", "ColorFormatter",
    "run_parallel",
]
