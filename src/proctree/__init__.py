"""proctree - print the live process table as a parent/child tree."""

__version__ = "0.1.0"
