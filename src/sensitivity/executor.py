"""
Concurrent execution of labelled sweep tasks.

Every task runs on its own worker thread. A single collector (the calling
thread) gathers ``(label, result)`` pairs as workers complete, waits for
all of them (join barrier) and returns the results sorted by label, so the
output order never depends on completion order.

Failure policy is abort-all: every worker is still awaited, failures are
logged, and the failure of the lexicographically first failing label is
re-raised. No partial result is returned.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
from typing import Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_labelled_tasks(
    tasks: Dict[str, Callable[[], T]],
    max_workers: Optional[int] = None,
) -> Dict[str, T]:
    """
    Run labelled tasks concurrently and collect their results.

    Parameters
    ----------
    tasks : Dict[str, Callable[[], T]]
        Label -> zero-argument callable.
    max_workers : int, optional
        Worker threads; None uses the executor default.

    Returns
    -------
    Dict[str, T]
        Label -> result, ordered by label.

    Raises
    ------
    Exception
        The exception of the first failing label (in label order), after
        all workers have finished.
    """
    collected: Dict[str, T] = {}
    failures: Dict[str, BaseException] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(task): label for label, task in tasks.items()}

        for future in as_completed(futures):
            label = futures[future]
            try:
                collected[label] = future.result()
            except Exception as exc:
                logger.warning("Sweep worker '%s' failed: %s", label, exc)
                failures[label] = exc

    if failures:
        first = min(failures)
        logger.warning("%d of %d sweep workers failed; aborting", len(failures), len(tasks))
        raise failures[first]

    return {label: collected[label] for label in sorted(collected)}
