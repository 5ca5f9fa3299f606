"""
Work Partitioning
=================

Sizes the capture worker pool and distributes pending products across it.
"""

from typing import Dict, List, Optional
import math
import os

from pricetag_renderer.models.schemas import IdentityKey, Product, WorkItem


def compute_worker_count(cpu_count: Optional[int] = None, fraction: float = 0.75) -> int:
    """
    Number of capture workers for this machine.

    Args:
        cpu_count: Logical CPUs, defaults to ``os.cpu_count()``
        fraction: Share of the CPUs to use

    Returns:
        ``floor(cpu_count * fraction)``, at least 1
    """
    if cpu_count is None:
        cpu_count = os.cpu_count() or 1
    return max(1, math.floor(cpu_count * fraction))


def partition_work(
    products: List[Product], pending: List[Product], worker_count: int
) -> List[List[WorkItem]]:
    """
    Distribute pending products round-robin over ``worker_count`` groups.

    Pending product ``i`` lands in group ``i % worker_count``, so each group
    keeps the relative order of the pending list. Every item carries the index
    of its record in the full collection, which is what the page server
    addresses. Groups are empty when there are more workers than products.

    Args:
        products: Full, unfiltered collection
        pending: Products selected for rendering, a subset of ``products``
        worker_count: Number of groups

    Returns:
        ``worker_count`` lists of work items

    Raises:
        ValueError: If ``worker_count`` is below 1 or a pending product is not
            part of the collection
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be at least 1, got {worker_count}")

    # First occurrence wins when identity keys repeat
    positions: Dict[IdentityKey, int] = {}
    for index, product in enumerate(products):
        positions.setdefault(product.identity_key, index)

    groups: List[List[WorkItem]] = [[] for _ in range(worker_count)]
    for order, product in enumerate(pending):
        try:
            index = positions[product.identity_key]
        except KeyError:
            raise ValueError(f"Product {product.image_stem} is not part of the collection")
        groups[order % worker_count].append(WorkItem(index=index, product=product))

    return groups
