"""
General utility functions for the corrmath package.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar('T')
U = TypeVar('U')

logger = logging.getLogger(__name__)


def unordered_pairs(coll: Sequence[T]) -> List[Tuple[T, T]]:
    """
    Every unordered pair of distinct elements, in collection order.

    For each element, pair it with each element that comes after it.

    Args:
        coll: Collection to process

    Returns:
        List of (earlier, later) tuples
    """
    result = []
    n = len(coll)
    for i in range(n):
        for j in range(i + 1, n):
            result.append((coll[i], coll[j]))
    return result


def evaluate_keyed(func: Callable[..., U],
                   tasks: Dict[Any, Tuple],
                   max_workers: Optional[int] = 1) -> Dict[Any, U]:
    """
    Evaluate func for each keyed argument tuple, optionally on a thread pool.

    Results are collected by key, and the returned dict follows the order of
    ``tasks`` whatever order the workers finish in.

    Args:
        func: Function to call
        tasks: Mapping of key to positional argument tuple
        max_workers: Number of worker threads; 1 or None evaluates inline

    Returns:
        Mapping of key to result, in task order
    """
    if not max_workers or max_workers <= 1 or len(tasks) <= 1:
        return {key: func(*args) for key, args in tasks.items()}

    workers = min(max_workers, len(tasks))
    logger.debug(f"Evaluating {len(tasks)} tasks on {workers} workers")

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            key: pool.submit(func, *args)
            for key, args in tasks.items()
        }
        return {key: future.result() for key, future in futures.items()}
