"""Compile errors raised while translating IPDL to Epilog.

Every failure is fatal: the compiler raises a CompileError and produces no
output. The error kind is exposed as an enum so callers can branch on it
without parsing messages.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class CompileErrorKind(str, Enum):
    """Reason a node could not be compiled."""

    UNRECOGNIZED_DECLARATION = "unrecognized_declaration"
    UNPARSABLE_SITUATION = "unparsable_situation"
    NESTED_OBJECT = "nested_object"
    ORPHAN_ANNOTATION = "orphan_annotation"
    UNKNOWN_VALUE = "unknown_value"
    UNSUPPORTED_EXPRESSION = "unsupported_expression"


_MESSAGES = {
    CompileErrorKind.UNRECOGNIZED_DECLARATION: "Unrecognized declaration",
    CompileErrorKind.UNPARSABLE_SITUATION: "Unparsable situation",
    CompileErrorKind.NESTED_OBJECT: "Nested object",
    CompileErrorKind.ORPHAN_ANNOTATION: "Orphan annotation",
    CompileErrorKind.UNKNOWN_VALUE: "Unknown IPDL value type",
    CompileErrorKind.UNSUPPORTED_EXPRESSION: "Unsupported expression",
}


class CompileError(ValueError):
    """Fatal IPDL compilation error.

    Attributes:
        kind: What went wrong
        name: Name of the offending declaration, chain, property or annotation
        node: JSON-compatible dump of the rejected node
    """

    def __init__(
        self, kind: CompileErrorKind, name: str | None, node: Any = None
    ) -> None:
        self.kind = kind
        self.name = name
        self.node = node
        dump = json.dumps(node, default=str, sort_keys=True)
        label = f' "{name}"' if name else ""
        super().__init__(f"{_MESSAGES[kind]}{label}: {dump}")
