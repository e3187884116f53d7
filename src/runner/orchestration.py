"""
orchestration.py - Parallel batch tessellation over a multiprocessing pool.

The whole batch is validated in the driver process first, so failures are
reported with the correct instance index and nothing is sampled when any
instance is invalid. Validated instances are then split into chunks; each
chunk is an independent ``curves.run`` call executed by a pool worker, and
chunk results are concatenated back in input order.
"""

import os
import sys
import logging
import traceback
from multiprocessing import Pool
from typing import Optional, Sequence, Tuple, Union

from curves.batch import CurveBatch, CurveInstance, run, validate_batch
from curves.resolution import SampleResolution

from .config import RunnerConfig
from .logging_utils import configure_logging

LOGGER_NAME = "worker"

_resolution: Union[int, SampleResolution, None] = None
_init_error: Union[Exception, None] = None
_init_error_traceback: Optional[str] = None


def worker_init(config: RunnerConfig, resolution: Union[int, SampleResolution]) -> None:
    """Initializer for multiprocessing.Pool workers (per process)."""
    global _resolution
    global _init_error
    global _init_error_traceback
    try:
        pid = os.getpid()
        log_path = configure_logging(
            level=config.logger_level,
            log_dir=config.log_dir,
            name=LOGGER_NAME,
            run_prefix=f"worker_{pid}",
        )
        logger = logging.getLogger(LOGGER_NAME)
        logger.debug(f"RunnerConfig: {config!r}")
        _resolution = resolution
        logger.info(f"[worker_init] Worker PID={pid} initialized OK -> {log_path}")

    except Exception as e:
        _init_error = e
        _init_error_traceback = traceback.format_exc()
        # print to stderr in case logging itself failed
        print(f"[worker_init][PID={os.getpid()}] FATAL: {e}\n{_init_error_traceback}", file=sys.stderr, flush=True)


def sample_chunk(chunk: Sequence[CurveInstance]) -> Tuple[Optional[CurveBatch], Optional[Exception]]:
    """Sample one chunk inside a worker and return (batch, error)."""
    logger = logging.getLogger(LOGGER_NAME)
    if _init_error:
        logger.error(f"Worker-{os.getpid()} initialization error in worker_init().")
        logger.error(f"Error: {_init_error}. Traceback:")
        logger.error(f"{_init_error_traceback}")
        raise _init_error

    try:
        batch = run(chunk, _resolution)
        logger.debug(f"Worker-{os.getpid()} sampled {len(chunk)} instance(s) -> {len(batch)} points.")
        return batch, None
    except Exception as e:
        logger.error(f"Failed to sample chunk starting at group {chunk[0].group!r}: {e}")
        return None, e


def run_parallel(instances: Sequence[CurveInstance],
                 resolution: Union[int, SampleResolution],
                 config: Optional[RunnerConfig] = None) -> CurveBatch:
    """Validate, then sample ``instances`` in chunks across worker processes.

    The result is identical to ``curves.run(instances, resolution)`` for any
    process count or chunk size.

    Raises:
        BatchFailure: If any instance is invalid (raised before the pool starts).
    """
    config = config or RunnerConfig()
    logger = logging.getLogger("runner")

    resolved = validate_batch(instances, resolution)
    chunks = [resolved[i:i + config.chunk_size] for i in range(0, len(resolved), config.chunk_size)]
    processes = min(config.processes, len(chunks))
    logger.info(f"Sampling {len(resolved)} instance(s) in {len(chunks)} chunk(s) on {max(processes, 1)} process(es).")

    if processes <= 1:
        return CurveBatch.concat([run(chunk, resolution) for chunk in chunks])

    batches = []
    with Pool(processes=processes, initializer=worker_init, initargs=(config, resolution)) as pool:
        for i, (batch, err) in enumerate(pool.imap(sample_chunk, chunks)):
            if err:
                logger.critical(f"Fatal error in chunk {i}: {err}")
                pool.terminate()
                raise err
            batches.append(batch)

    return CurveBatch.concat(batches)
