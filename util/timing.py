import time
from contextlib import contextmanager
from typing import Iterator, Dict, Any
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Dict[str, Any]) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "pipeline.mux", job=job_id):
          ...
    Emits one INFO on exit: "<name>.done ms=<int> key=val ..."
    or one WARNING "<name>.error ms=<int> key=val ..." when the block raised.
    """
    t0 = time.perf_counter()
    suffix = "".join(f" {k}={v}" for k, v in kv.items())
    try:
        yield
    except BaseException:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        logger.warning("%s.error ms=%d%s", name, dt_ms, suffix)
        raise
    dt_ms = int((time.perf_counter() - t0) * 1000)
    logger.info("%s.done ms=%d%s", name, dt_ms, suffix)
