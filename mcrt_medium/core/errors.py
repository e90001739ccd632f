"""
Exceptions raised by the medium system.

Only configuration problems are reported through exceptions. Physical
outcomes such as a packet that does not interact are returned as booleans
or sentinel values by the functions that produce them.
"""

from typing import Iterable


class MediumSystemError(Exception):
    """Base class for all errors raised by mcrt_medium."""
    pass


class ConfigurationError(MediumSystemError):
    """Raised when setup input is malformed or contradictory.

    The run is aborted; these errors are never recovered from.
    """

    def __init__(self, message: str, problems: Iterable[str] = ()):
        self.problems = list(problems)
        if self.problems:
            message = message + ":\n" + "\n".join(f"  - {p}" for p in self.problems)
        super().__init__(message)
