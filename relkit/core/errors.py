"""Process exit codes.

Every command prints a JSON document whose ``status`` field tells the exact
outcome. The exit code only carries the coarse shade a shell script can gate on.
"""

from enum import IntEnum

__all__ = ["ExitCode"]


class ExitCode(IntEnum):
    """Exit codes for CLI commands.

    These values are part of the external contract and must remain stable:
    - 0: Success / condition met
    - 1: Error, failure, timeout or incomplete release
    - 2: Threshold not met (coverage gate only)
    """

    OK = 0
    FAILURE = 1
    THRESHOLD = 2

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        return self == ExitCode.OK
