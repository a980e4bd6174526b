"""Epilog output: form serialization and compiled program container."""

from ipdl_epilog.epilog.serializer import Form, grind, grindem
from ipdl_epilog.epilog.program import EpilogProgram, write_program

__all__ = ["Form", "grind", "grindem", "EpilogProgram", "write_program"]
