"""
Cross-process communication.

The medium system merges partial results computed by cooperating processes
through a single reduction primitive, ``sum_all``, applied in place to flat
float64 buffers at well-defined barriers (after setup and after each
radiation field accumulation segment).

Implements:
- SingleProcessCommunicator: the identity reduction for a single process
- MpiCommunicator: element-wise sum over MPI_COMM_WORLD using mpi4py
- Contiguous block partitioning of cells and packets over processes
"""

import logging
from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)


class ProcessCommunicator(ABC):
    """Abstract cross-process reduction collaborator."""

    @property
    @abstractmethod
    def rank(self) -> int:
        """Index of this process."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of cooperating processes."""

    @property
    def is_root(self) -> bool:
        return self.rank == 0

    @property
    def is_multi_process(self) -> bool:
        return self.size > 1

    @abstractmethod
    def sum_all(self, buffer: np.ndarray) -> None:
        """Replace each element of a float64 buffer by its sum over all processes."""

    def block(self, count: int) -> Tuple[int, int]:
        """Range [start, stop) of a contiguous block of items owned by this process."""
        return block_range(count, self.rank, self.size)


class SingleProcessCommunicator(ProcessCommunicator):
    """Communicator for a run confined to one process."""

    @property
    def rank(self) -> int:
        return 0

    @property
    def size(self) -> int:
        return 1

    def sum_all(self, buffer: np.ndarray) -> None:
        pass


class MpiCommunicator(ProcessCommunicator):
    """Communicator over MPI_COMM_WORLD.

    Requires the optional mpi4py dependency (``pip install mcrt-medium[mpi]``).
    """

    def __init__(self):
        from mpi4py import MPI

        self._mpi = MPI
        self._comm = MPI.COMM_WORLD
        logger.info(f"MPI communicator: rank {self._comm.Get_rank()} of {self._comm.Get_size()}")

    @property
    def rank(self) -> int:
        return self._comm.Get_rank()

    @property
    def size(self) -> int:
        return self._comm.Get_size()

    def sum_all(self, buffer: np.ndarray) -> None:
        if self.size == 1:
            return
        if buffer.dtype != np.float64 or not buffer.flags.c_contiguous:
            raise TypeError("sum_all requires a contiguous float64 buffer")
        self._comm.Allreduce(self._mpi.IN_PLACE, [buffer, self._mpi.DOUBLE], op=self._mpi.SUM)

    def barrier(self) -> None:
        self._comm.Barrier()


def block_range(count: int, rank: int, size: int) -> Tuple[int, int]:
    """
    Contiguous block of ``count`` items assigned to process ``rank``.

    The first ``count % size`` processes receive one extra item, so block
    sizes differ by at most one and the blocks cover all items exactly once.

    Parameters
    ----------
    count : int
        Total number of items
    rank : int
        Process index
    size : int
        Number of processes

    Returns
    -------
    start, stop : int
        Half-open item range
    """
    base, extra = divmod(count, size)
    start = rank * base + min(rank, extra)
    stop = start + base + (1 if rank < extra else 0)
    return start, stop


def create_communicator(use_mpi: bool = False) -> ProcessCommunicator:
    """Communicator for the configured parallelization mode."""
    if use_mpi:
        return MpiCommunicator()
    return SingleProcessCommunicator()
