"""IPDL to Epilog compiler."""

__version__ = "0.1.0"
