"""Parallel syntax checking of PHP sources with a bounded pool of checker processes."""

__app_name__ = "parallel-lint"
__version__ = "0.4.0"
