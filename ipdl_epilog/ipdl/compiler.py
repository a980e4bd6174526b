"""Compiler for IPDL to Epilog translation.

This module provides deterministic (given a deterministic symbol
generator) compilation from structured IPDL programs to Epilog rules and
facts over a fixed vocabulary:

    object, prop          - declarations
    chain, matches_chain  - chains
    situation, matches_situation
    direct_cause, indirect_cause
    annotation

Every situation node compiles to a fresh symbol S and rules for
matches_situation(S, Situation). Composite nodes (causal sequences,
disjunctions, event expressions) compile their children first and refer
to the children's symbols from their own rules.

The compiler builds structured forms (see ipdl_epilog.epilog.serializer)
rather than text; EpilogProgram renders them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, NamedTuple

from pydantic import BaseModel

from ipdl_epilog.epilog.program import EpilogProgram
from ipdl_epilog.epilog.serializer import Form
from ipdl_epilog.ipdl.errors import CompileError, CompileErrorKind
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
    ObjectValue,
    OrOperation,
    Program,
    RuleCall,
    SituationNode,
    StringValue,
    VariableSituation,
)
from ipdl_epilog.ipdl.symbols import SymbolGenerator, UuidSymbolGenerator

logger = logging.getLogger(__name__)


class CompiledSituation(NamedTuple):
    """Rules generated for a situation and the symbol they define."""

    forms: list[Form]
    symbol: str


@dataclass
class CompileResult:
    """Outcome of try_compile.

    Attributes:
        success: Whether compilation finished
        program: The compiled program, if successful
        error: The error that stopped compilation, if any
    """

    success: bool
    program: EpilogProgram | None = None
    error: CompileError | None = None


def _quote(value: Any) -> str:
    """Render a value as an Epilog string literal."""
    return json.dumps(value, ensure_ascii=False)


def _dump(node: Any) -> Any:
    if isinstance(node, BaseModel):
        return node.model_dump(mode="json", by_alias=True)
    return node


class IPDLEpilogCompiler:
    """Compiles structured IPDL programs to Epilog.

    Symbols for situations and logic variables come from an injected
    SymbolGenerator; pass a CounterSymbolGenerator for reproducible output.
    """

    SITUATION_PREFIX = "situation"

    def __init__(
        self,
        symbols: SymbolGenerator | None = None,
        situation_var: str = "Situation",
    ) -> None:
        """Initialize the compiler.

        Args:
            symbols: Source of fresh symbols (default: UuidSymbolGenerator)
            situation_var: Logic variable standing for the situation under test
        """
        self._symbols = symbols or UuidSymbolGenerator()
        self._var = situation_var

    def compile(self, program: Program) -> EpilogProgram:
        """Compile an IPDL program.

        Args:
            program: The program to compile

        Returns:
            EpilogProgram with one block per declaration and per chain

        Raises:
            CompileError: On the first node that cannot be compiled
        """
        declarations: list[list[Form]] = []
        for name, declaration in program.declarations.items():
            declarations.extend(self.compile_declaration(name, declaration))

        chains = [
            self.compile_chain(name, chain) for name, chain in program.chains.items()
        ]

        logger.info(
            f"Compiled {len(program.declarations)} declarations "
            f"and {len(chains)} chains"
        )
        return EpilogProgram(declarations=declarations, chains=chains)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def compile_declaration(self, name: str, declaration: Any) -> list[list[Form]]:
        """Compile a declaration to object/prop facts.

        Dictionaries are flattened: each inner declaration is compiled under
        "<name>.<inner>" and becomes its own block. Nothing is emitted for
        the dictionary itself.

        Returns:
            List of blocks, one per object declaration reached
        """
        if isinstance(declaration, DictionaryDeclaration):
            blocks: list[list[Form]] = []
            for inner_name, inner in declaration.properties.items():
                blocks.extend(self.compile_declaration(f"{name}.{inner_name}", inner))
            return blocks

        if isinstance(declaration, ObjectDeclaration):
            logger.debug(f"Compiling object declaration {name}")
            forms: list[Form] = [["object", _quote(name)]]
            for prop_name, value in declaration.properties.items():
                forms.append(
                    [
                        "prop",
                        _quote(name),
                        _quote(prop_name),
                        self.compile_value(value, name),
                    ]
                )
            return [forms]

        raise CompileError(
            CompileErrorKind.UNRECOGNIZED_DECLARATION, name, _dump(declaration)
        )

    def compile_value(self, value: Any, owner: str) -> str:
        """Compile a typed property value of an object declaration.

        Args:
            value: The typed value
            owner: Name of the declaration the value belongs to

        Raises:
            CompileError: For object values (one level of nesting only) and
                unknown type tags
        """
        if isinstance(value, StringValue):
            return _quote(value.value)
        if isinstance(value, ObjectValue):
            raise CompileError(CompileErrorKind.NESTED_OBJECT, owner, _dump(value))
        raise CompileError(CompileErrorKind.UNKNOWN_VALUE, owner, _dump(value))

    # ------------------------------------------------------------------
    # Situations
    # ------------------------------------------------------------------

    def compile_situation(self, situation: Any) -> CompiledSituation:
        """Compile a situation node to matches_situation rules.

        Returns:
            CompiledSituation with the generated forms and the symbol S such
            that matches_situation(S, Situation) holds for matching situations

        Raises:
            CompileError: If the node is not a recognized situation
        """
        if isinstance(situation, AnySituation):
            compiled = self._compile_any()
        elif isinstance(situation, BlockSituation):
            compiled = self._compile_block(situation)
        elif isinstance(situation, LogicBlockSituation):
            compiled = CompiledSituation([], self._situation_symbol())
        elif isinstance(situation, CausalOperation):
            compiled = self.compile_causal(situation)
        elif isinstance(situation, OrOperation):
            compiled = self.compile_or(situation)
        elif isinstance(situation, RuleCall):
            compiled = self._compile_rule_call(situation)
        elif isinstance(situation, VariableSituation):
            compiled = self._compile_variable(situation)
        else:
            raise CompileError(
                CompileErrorKind.UNPARSABLE_SITUATION,
                str(getattr(situation, "type", None)),
                _dump(situation),
            )

        if isinstance(situation, SituationNode) and situation.annotations:
            forms = list(compiled.forms)
            for annotation in situation.annotations:
                forms.extend(self.compile_annotation(annotation, compiled.symbol))
            compiled = CompiledSituation(forms, compiled.symbol)

        return compiled

    def _situation_symbol(self) -> str:
        return self._symbols.next_symbol(self.SITUATION_PREFIX)

    def _head(self, symbol: str) -> Form:
        return ["matches_situation", symbol, self._var]

    def _compile_any(self) -> CompiledSituation:
        symbol = self._situation_symbol()
        rule = ["rule", self._head(symbol), ["situation", self._var]]
        return CompiledSituation([rule], symbol)

    def _compile_block(self, block: BlockSituation) -> CompiledSituation:
        """Compile a block matched on its "event" property.

        A literal event is compared directly. An expression event binds the
        event to Situation.event and requires it to match the expression.
        """
        symbol = self._situation_symbol()
        var = self._var
        forms: list[Form] = []
        rule: list = ["rule", self._head(symbol), ["situation", var]]

        for key, value in block.properties.items():
            if key != "event":
                logger.debug(f"Ignoring unsupported block property '{key}'")
                continue

            if isinstance(value, EventExpression):
                expr_forms, expr_symbol = self.compile_expression(value)
                forms.extend(expr_forms)
                event_var = f"{var}.event"
                rule.append(["prop", var, '"event"', event_var])
                rule.append(["matches_situation", expr_symbol, event_var])
            else:
                if value.type != "string" or value.value is None:
                    raise CompileError(CompileErrorKind.UNKNOWN_VALUE, key, _dump(value))
                rule.append(["prop", var, '"event"', _quote(str(value.value))])

        forms.append(rule)
        return CompiledSituation(forms, symbol)

    def compile_expression(self, expression: EventExpression) -> CompiledSituation:
        """Compile a disjunctive event expression.

        Raises:
            CompileError: If the operator is anything other than "or"
        """
        if expression.operator != "or":
            raise CompileError(
                CompileErrorKind.UNSUPPORTED_EXPRESSION,
                expression.operator,
                _dump(expression),
            )

        symbol = self._situation_symbol()
        forms: list[Form] = []
        for operand in expression.children:
            op_forms, op_symbol = self.compile_situation(operand)
            forms.extend(op_forms)
            forms.append(
                [
                    "rule",
                    self._head(symbol),
                    ["matches_situation", op_symbol, self._var],
                ]
            )
        return CompiledSituation(forms, symbol)

    def compile_causal(self, causal: CausalOperation) -> CompiledSituation:
        """Compile a causally ordered sequence of situations.

        The last child binds to the situation under test. Walking backwards,
        each non-wildcard child gets a fresh variable bound to its cause:
        the previous child through direct_cause, or, when wildcards sit in
        between, the nearest non-wildcard child before them through
        indirect_cause. The first child is never linked to an earlier cause.

        With several wildcards in a row the cause is the nearest non-wildcard
        child, not operand i-2 (which would itself be a wildcard). For a
        single wildcard both are the same operand.
        """
        symbol = self._situation_symbol()
        var = self._var
        children = causal.children
        forms: list[Form] = []
        operands: list[str] = []

        for child in children:
            child_forms, child_symbol = self.compile_situation(child)
            forms.extend(child_forms)
            operands.append(child_symbol)

        if not operands:
            logger.debug(f"Empty causal sequence {symbol} matches nothing")
            return CompiledSituation(forms, symbol)

        rule: list = [
            "rule",
            self._head(symbol),
            ["matches_situation", operands[-1], var],
        ]

        current = var
        for i in range(len(children) - 1, 0, -1):
            # wildcards only decide whether their neighbours link directly
            if isinstance(children[i], AnySituation):
                continue

            if not isinstance(children[i - 1], AnySituation):
                cause, relation = i - 1, "direct_cause"
            else:
                cause, relation = _nearest_non_wildcard(children, i - 1), "indirect_cause"
                if cause is None:
                    break

            previous = current
            current = self._symbols.next_symbol(var)
            rule.append(["matches_situation", operands[cause], current])
            rule.append([relation, current, previous])

        forms.append(rule)
        return CompiledSituation(forms, symbol)

    def compile_or(self, disjunction: OrOperation) -> CompiledSituation:
        """Compile alternatives to one rule per operand under a shared head."""
        symbol = self._situation_symbol()
        var = self._var
        forms: list[Form] = []
        operands: list[str] = []

        for child in disjunction.children:
            child_forms, child_symbol = self.compile_situation(child)
            forms.extend(child_forms)
            if child_symbol:
                operands.append(child_symbol)

        for operand in operands:
            forms.append(
                [
                    "rule",
                    self._head(symbol),
                    ["situation", var],
                    ["matches_situation", operand, var],
                ]
            )
        return CompiledSituation(forms, symbol)

    def _compile_rule_call(self, call: RuleCall) -> CompiledSituation:
        symbol = self._situation_symbol()
        rule = [
            "rule",
            self._head(symbol),
            ["situation", self._var],
            ["matches_chain", self.chain_symbol(call.name), self._var],
        ]
        return CompiledSituation([rule], symbol)

    def _compile_variable(self, variable: VariableSituation) -> CompiledSituation:
        symbol = self._situation_symbol()
        rule = [
            "rule",
            self._head(symbol),
            ["matches_situation", f"matches_situation_{variable.value}", self._var],
        ]
        return CompiledSituation([rule], symbol)

    # ------------------------------------------------------------------
    # Chains and annotations
    # ------------------------------------------------------------------

    @staticmethod
    def chain_symbol(name: str) -> str:
        return f"chain_{name}"

    def compile_chain(self, name: str, chain: Chain) -> list[Form]:
        """Compile a chain to a chain fact and a matches_chain rule.

        The rule requires every child to match some situation. Order across
        children is not constrained; only causal operations inside a child
        impose order.
        """
        chain_symbol = self.chain_symbol(name)
        var = self._var
        logger.debug(f"Compiling chain {name} ({len(chain.children)} situations)")

        forms: list[Form] = [["chain", chain_symbol]]
        rule: list = ["rule", ["matches_chain", chain_symbol, var]]

        for child in chain.children:
            child_forms, child_symbol = self.compile_situation(child)
            forms.extend(child_forms)
            rule.append(["situation", var])
            rule.append(["matches_situation", child_symbol, var])

        forms.append(rule)

        for annotation in chain.annotations:
            forms.extend(self.compile_annotation(annotation, chain_symbol))

        return forms

    def compile_annotation(self, annotation: Annotation, target: str | None) -> list[Form]:
        """Compile an annotation attached to a chain or situation symbol.

        Raises:
            CompileError: If there is no target
        """
        if not target:
            raise CompileError(
                CompileErrorKind.ORPHAN_ANNOTATION, annotation.name, _dump(annotation)
            )

        annotation_symbol = f"{target}_annotation_{annotation.name}"
        forms: list[Form] = [
            ["annotation", target, _quote(annotation.name), annotation_symbol]
        ]
        for key, raw in annotation.properties.items():
            if raw.value is None:
                raise CompileError(CompileErrorKind.UNKNOWN_VALUE, key, _dump(raw))
            if raw.type == "string":
                value = _quote(raw.value)
            elif isinstance(raw.value, str):
                # variable reference, e.g. Owner
                value = raw.value
            else:
                value = json.dumps(raw.value)
            forms.append(["prop", annotation_symbol, _quote(key), value])
        return forms


def _nearest_non_wildcard(children: list, start: int) -> int | None:
    for j in range(start, -1, -1):
        if not isinstance(children[j], AnySituation):
            return j
    return None


def compile_ipdl_to_epilog(
    program: Program, symbols: SymbolGenerator | None = None
) -> EpilogProgram:
    """Convenience function to compile an IPDL program.

    Args:
        program: The program to compile
        symbols: Optional symbol generator

    Returns:
        The compiled EpilogProgram
    """
    compiler = IPDLEpilogCompiler(symbols=symbols)
    return compiler.compile(program)


def try_compile(
    program: Program, symbols: SymbolGenerator | None = None
) -> CompileResult:
    """Compile without raising; failures are reported in the result."""
    try:
        return CompileResult(success=True, program=compile_ipdl_to_epilog(program, symbols))
    except CompileError as e:
        logger.debug(f"Compilation failed: {e}")
        return CompileResult(success=False, error=e)
