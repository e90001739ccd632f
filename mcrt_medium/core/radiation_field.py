"""
Radiation field accumulator.

The radiation field is tallied as the sum of L·Δs (packet luminosity times
path length) per spatial cell and wavelength bin, in three tables:

- primary: contributions of primary source packets
- secondary (accumulating): scratch table receiving contributions of the
  secondary emission packets currently in flight
- secondary (stable): the secondary field of the previous synchronized
  segment, used for queries while new secondary packets are accumulating

The usable radiation field is always primary + stable secondary. The
accumulating table becomes the stable one only when communicate(False) is
called, so a secondary emission spectrum computed from the field never sees
the deposits of the packets it is launching.

Many worker threads add into the same (cell, bin) addresses concurrently.
Each thread adds into its own partial table, created on first use and
registered once under a lock, so the store path takes no lock. The partial
tables are folded into the shared table at the communicate barrier, after
which the sum is reduced across processes.
"""

import logging
import threading
from typing import List, Optional

import numpy as np

from mcrt_medium.core.communicator import ProcessCommunicator, SingleProcessCommunicator

logger = logging.getLogger(__name__)


class _ThreadShard:
    """Partial tables owned by one worker thread."""

    def __init__(self, thread: threading.Thread):
        self.thread = thread
        self.primary: Optional[np.ndarray] = None
        self.secondary: Optional[np.ndarray] = None


class RadiationField:
    """Three-table radiation field tally with thread-sharded accumulation.

    Args:
        num_cells: Number of spatial cells
        num_bins: Number of wavelength bins
        secondary: Allocate the secondary tables (secondary emission enabled)
        communicator: Cross-process reduction collaborator

    Example:
        >>> rf = RadiationField(num_cells=10, num_bins=5)
        >>> rf.clear(primary=True)
        >>> rf.store(True, 2, 3, 1.5)
        >>> rf.communicate(primary=True)
        >>> rf.value(2, 3)
        1.5
    """

    def __init__(
        self,
        num_cells: int,
        num_bins: int,
        secondary: bool = False,
        communicator: Optional[ProcessCommunicator] = None,
    ):
        self.num_cells = int(num_cells)
        self.num_bins = int(num_bins)
        self.communicator = communicator or SingleProcessCommunicator()

        shape = (self.num_cells, self.num_bins)
        self._primary = np.zeros(shape)
        self._secondary_accumulating = np.zeros(shape) if secondary else None
        self._secondary_stable = np.zeros(shape) if secondary else None

        self._local = threading.local()
        self._lock = threading.Lock()
        self._shards: List[_ThreadShard] = []

    @property
    def has_secondary(self) -> bool:
        return self._secondary_accumulating is not None

    # -------------------------------------------------------------------------
    # Accumulation cycle
    # -------------------------------------------------------------------------

    def clear(self, primary: bool) -> None:
        """Start a new accumulation cycle.

        Clearing the primary field also clears the stable secondary table,
        so that it is valid before any secondary packet has been launched.
        Clearing the secondary field only clears the accumulating table;
        the stable table stays queryable.
        """
        with self._lock:
            if primary:
                self._primary.fill(0.0)
                if self._secondary_stable is not None:
                    self._secondary_stable.fill(0.0)
            elif self._secondary_accumulating is not None:
                self._secondary_accumulating.fill(0.0)
            for shard in self._shards:
                partial = shard.primary if primary else shard.secondary
                if partial is not None:
                    partial.fill(0.0)

    def store(self, primary: bool, cell: int, bin: int, value: float) -> None:
        """Add L·Δs to the primary or the accumulating secondary table.

        Safe for concurrent use by any number of threads.
        """
        shard = getattr(self._local, "shard", None)
        if shard is None:
            shard = self._register_shard()
        if primary:
            partial = shard.primary
            if partial is None:
                partial = shard.primary = np.zeros((self.num_cells, self.num_bins))
        else:
            partial = shard.secondary
            if partial is None:
                partial = shard.secondary = np.zeros((self.num_cells, self.num_bins))
        partial[cell, bin] += value

    def _register_shard(self) -> _ThreadShard:
        shard = _ThreadShard(threading.current_thread())
        with self._lock:
            self._shards.append(shard)
        self._local.shard = shard
        logger.debug(f"Registered radiation field shard for thread {shard.thread.name}")
        return shard

    def communicate(self, primary: bool) -> None:
        """Synchronize the tally after all stores of a segment completed.

        Folds the per-thread partial tables into the shared table and sums
        it over all processes. For the secondary field, the synchronized
        accumulating table then becomes the stable table.
        """
        target = self._primary if primary else self._secondary_accumulating
        if target is None:
            return

        with self._lock:
            for shard in self._shards:
                partial = shard.primary if primary else shard.secondary
                if partial is not None:
                    target += partial
                    partial.fill(0.0)
            # shards of finished threads can never receive new stores
            self._shards = [s for s in self._shards if s.thread.is_alive()]

        self.communicator.sum_all(target)

        if not primary:
            np.copyto(self._secondary_stable, self._secondary_accumulating)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def value(self, cell: int, bin: int) -> float:
        """Usable L·Δs tally (primary + stable secondary) for one address."""
        result = self._primary[cell, bin]
        if self._secondary_stable is not None:
            result += self._secondary_stable[cell, bin]
        return float(result)

    def row(self, cell: int) -> np.ndarray:
        """Usable L·Δs tally for all wavelength bins of a cell."""
        if self._secondary_stable is None:
            return self._primary[cell].copy()
        return self._primary[cell] + self._secondary_stable[cell]

    def table(self, primary: bool) -> np.ndarray:
        """Primary or stable secondary table (zeros if not allocated)."""
        if primary:
            return self._primary
        if self._secondary_stable is None:
            return np.zeros_like(self._primary)
        return self._secondary_stable

    def __repr__(self) -> str:
        return (f"RadiationField(cells={self.num_cells}, bins={self.num_bins}, "
                f"secondary={self.has_secondary})")
