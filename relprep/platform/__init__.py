"""Operating system boundary (subprocesses)."""

from .process import ProcessError, run

__all__ = ["ProcessError", "run"]
