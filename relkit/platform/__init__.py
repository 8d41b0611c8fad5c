"""Platform boundary: subprocess execution."""

from relkit.platform.process import ProcessError, run

__all__ = ["ProcessError", "run"]
