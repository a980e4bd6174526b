"""Structured IPDL programs and their compilation to Epilog.

IPDL describes processes as declarations (typed objects and dictionaries)
and chains (ordered situations linked by causal or logical operators).

Flow:
    IPDL JSON -> Program.model_validate -> IPDLEpilogCompiler -> EpilogProgram
"""

from ipdl_epilog.ipdl.schema import (
    Annotation,
    AnySituation,
    BlockSituation,
    CausalOperation,
    Chain,
    DictionaryDeclaration,
    EventExpression,
    LogicBlockSituation,
    ObjectDeclaration,
    OrOperation,
    Program,
    RuleCall,
    VariableSituation,
)
from ipdl_epilog.ipdl.errors import CompileError, CompileErrorKind
from ipdl_epilog.ipdl.symbols import (
    CounterSymbolGenerator,
    SymbolGenerator,
    UuidSymbolGenerator,
)
from ipdl_epilog.ipdl.compiler import (
    CompiledSituation,
    CompileResult,
    IPDLEpilogCompiler,
    compile_ipdl_to_epilog,
    try_compile,
)

__all__ = [
    # Schema
    "Program",
    "Chain",
    "Annotation",
    "DictionaryDeclaration",
    "ObjectDeclaration",
    "AnySituation",
    "BlockSituation",
    "EventExpression",
    "LogicBlockSituation",
    "CausalOperation",
    "OrOperation",
    "RuleCall",
    "VariableSituation",
    # Errors
    "CompileError",
    "CompileErrorKind",
    # Symbols
    "SymbolGenerator",
    "UuidSymbolGenerator",
    "CounterSymbolGenerator",
    # Compiler
    "IPDLEpilogCompiler",
    "CompiledSituation",
    "CompileResult",
    "compile_ipdl_to_epilog",
    "try_compile",
]
