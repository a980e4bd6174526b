"""Pydantic models for structured IPDL programs.

An IPDL program has two parts:

- Declarations: named objects (flat property maps) and dictionaries
  (maps of nested declarations)
- Chains: named, ordered lists of situations with optional annotations

Situations form a closed tagged union keyed on "type" (and "operator" for
operations). Nodes whose tag is not recognized are kept as Unparsed* /
Unrecognized* / Unknown* models instead of failing validation, so that the
compiler reports them with the name of the declaration or chain they
appeared in.

Example program (JSON):
    {
        "declarations": {
            "Foo": {
                "type": "object",
                "properties": {"bar": {"type": "string", "value": "baz"}}
            }
        },
        "chains": {
            "greet": {
                "children": [
                    {"type": "block",
                     "properties": {"event": {"type": "string", "value": "hello"}}},
                    {"type": "block",
                     "properties": {"event": {"type": "string", "value": "bye"}}}
                ],
                "annotations": [
                    {"name": "priority",
                     "properties": {"level": {"type": "string", "value": "high"}}}
                ]
            }
        }
    }
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator

UNPARSED = "unparsed"


def _tag_of(value: Any, tag_for_dict) -> str:
    """Resolve the union tag of raw input or of an already-built model."""
    if isinstance(value, BaseModel):
        return getattr(type(value), "kind", UNPARSED)
    if isinstance(value, dict):
        return tag_for_dict(value)
    return UNPARSED


# ==============================================================================
# Typed values
# ==============================================================================


class StringValue(BaseModel):
    """A string literal, e.g. {"type": "string", "value": "baz"}."""

    kind: ClassVar[str] = "string"

    type: Literal["string"] = "string"
    value: str


class ObjectValue(BaseModel):
    """An inline object value.

    Only one level of objects is supported, so these are rejected when they
    appear as a property of an object declaration.
    """

    model_config = ConfigDict(extra="allow")
    kind: ClassVar[str] = "object"

    type: Literal["object"] = "object"
    properties: dict[str, Any] = Field(default_factory=dict)


class UnknownValue(BaseModel):
    """A typed value whose type tag is neither "string" nor "object"."""

    model_config = ConfigDict(extra="allow")
    kind: ClassVar[str] = UNPARSED

    type: Any = None


def _value_tag(data: dict) -> str:
    if data.get("type") in ("string", "object"):
        return data["type"]
    return UNPARSED


TypedValue = Annotated[
    Union[
        Annotated[StringValue, Tag("string")],
        Annotated[ObjectValue, Tag("object")],
        Annotated[UnknownValue, Tag(UNPARSED)],
    ],
    Discriminator(lambda v: _tag_of(v, _value_tag)),
]


# ==============================================================================
# Annotations
# ==============================================================================


class AnnotationValue(BaseModel):
    """A property of an annotation.

    Strings are quoted on output. Other types render string values as-is
    (variable references) and anything else as JSON, e.g. true or 3.
    """

    type: str = Field(..., description="Value type, e.g. 'string'")
    value: Any = Field(default=None, description="Raw value")


class Annotation(BaseModel):
    """Named key/value metadata attached to a chain or a situation."""

    name: str = Field(..., description="Annotation name, e.g. 'priority'")
    properties: dict[str, AnnotationValue] = Field(default_factory=dict)


# ==============================================================================
# Situations
# ==============================================================================


class SituationNode(BaseModel):
    """Fields shared by every situation."""

    annotations: list[Annotation] = Field(
        default_factory=list,
        description="Annotations attached to this situation's symbol",
    )

    @field_validator("annotations", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class AnySituation(SituationNode):
    """Wildcard matching every situation."""

    kind: ClassVar[str] = "any"

    type: Literal["any"] = "any"


class EventLiteral(BaseModel):
    """Literal value of a block property, e.g. {"type": "string", "value": "hello"}.

    Only string literals are valid as an event.
    """

    model_config = ConfigDict(extra="allow")
    kind: ClassVar[str] = "literal"

    type: str = "string"
    value: Any = None


class EventExpression(BaseModel):
    """Expression value of a block property.

    Only disjunction is supported: any child situation may match the
    event. An omitted operator is read as "or".
    """

    kind: ClassVar[str] = "expression"

    type: Literal["expression"] = "expression"
    operator: str = "or"
    children: list[Situation] = Field(default_factory=list)


def _block_property_tag(data: dict) -> str:
    return "expression" if data.get("type") == "expression" else "literal"


BlockProperty = Annotated[
    Union[
        Annotated[EventExpression, Tag("expression")],
        Annotated[EventLiteral, Tag("literal")],
    ],
    Discriminator(lambda v: _tag_of(v, _block_property_tag)),
]


class BlockSituation(SituationNode):
    """Situation matched by its properties (currently only "event")."""

    kind: ClassVar[str] = "block"

    type: Literal["block"] = "block"
    properties: dict[str, BlockProperty] = Field(default_factory=dict)


class LogicBlockSituation(SituationNode):
    """Inert placeholder; compiles to a symbol with no rules."""

    model_config = ConfigDict(extra="allow")
    kind: ClassVar[str] = "logic_block"

    type: Literal["logic_block"] = "logic_block"


class CausalOperation(SituationNode):
    """Children that happened in causal order."""

    kind: ClassVar[str] = "operation.causal"

    type: Literal["operation"] = "operation"
    operator: Literal["causal"] = "causal"
    children: list[Situation] = Field(default_factory=list)


class OrOperation(SituationNode):
    """Alternatives; matches when any child matches."""

    kind: ClassVar[str] = "operation.or"

    type: Literal["operation"] = "operation"
    operator: Literal["or"] = "or"
    children: list[Situation] = Field(default_factory=list)


class RuleCall(SituationNode):
    """Reference to another chain by name."""

    kind: ClassVar[str] = "rule_call"

    type: Literal["rule_call"] = "rule_call"
    name: str


class VariableSituation(SituationNode):
    """Reference to an externally defined matcher."""

    kind: ClassVar[str] = "variable"

    type: Literal["variable"] = "variable"
    value: str


class UnparsedSituation(BaseModel):
    """Situation with an unrecognized type/operator."""

    model_config = ConfigDict(extra="allow")
    kind: ClassVar[str] = UNPARSED

    type: Any = None


_SITUATION_TAGS = {"any", "block", "logic_block", "rule_call", "variable"}


def _situation_tag(data: dict) -> str:
    kind = data.get("type")
    if kind == "operation":
        operator = data.get("operator")
        if operator in ("causal", "or"):
            return f"operation.{operator}"
        return UNPARSED
    if kind in _SITUATION_TAGS:
        return kind
    return UNPARSED


Situation = Annotated[
    Union[
        Annotated[AnySituation, Tag("any")],
        Annotated[BlockSituation, Tag("block")],
        Annotated[LogicBlockSituation, Tag("logic_block")],
        Annotated[CausalOperation, Tag("operation.causal")],
        Annotated[OrOperation, Tag("operation.or")],
        Annotated[RuleCall, Tag("rule_call")],
        Annotated[VariableSituation, Tag("variable")],
        Annotated[UnparsedSituation, Tag(UNPARSED)],
    ],
    Discriminator(lambda v: _tag_of(v, _situation_tag)),
]


class Chain(BaseModel):
    """A named process pattern: situations that must all be matched."""

    children: list[Situation] = Field(default_factory=list)
    annotations: list[Annotation] = Field(default_factory=list)

    @field_validator("children", "annotations", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


# ==============================================================================
# Declarations
# ==============================================================================


class ObjectDeclaration(BaseModel):
    """Flat object: property name -> typed value."""

    model_config = ConfigDict(extra="allow")
    kind: ClassVar[str] = "object"

    type: Literal["object"] = "object"
    properties: dict[str, TypedValue] = Field(default_factory=dict)


class DictionaryDeclaration(BaseModel):
    """Named group of nested declarations, flattened with dotted names."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)
    kind: ClassVar[str] = "dictionary"

    class_: str | None = Field(default="Dictionary", alias="class")
    properties: dict[str, Declaration] = Field(default_factory=dict)


class UnrecognizedDeclaration(BaseModel):
    """Declaration that is neither an object nor a dictionary."""

    model_config = ConfigDict(extra="allow")
    kind: ClassVar[str] = UNPARSED

    type: Any = None


def _declaration_tag(data: dict) -> str:
    if data.get("class") == "Dictionary" or data.get("type") == "dictionary":
        return "dictionary"
    if data.get("type") == "object":
        return "object"
    return UNPARSED


Declaration = Annotated[
    Union[
        Annotated[DictionaryDeclaration, Tag("dictionary")],
        Annotated[ObjectDeclaration, Tag("object")],
        Annotated[UnrecognizedDeclaration, Tag(UNPARSED)],
    ],
    Discriminator(lambda v: _tag_of(v, _declaration_tag)),
]


class Program(BaseModel):
    """Complete structured IPDL program."""

    declarations: dict[str, Declaration] = Field(default_factory=dict)
    chains: dict[str, Chain] = Field(default_factory=dict)

    @field_validator("declarations", "chains", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return {} if v is None else v


for _model in (
    EventExpression,
    BlockSituation,
    CausalOperation,
    OrOperation,
    Chain,
    DictionaryDeclaration,
    Program,
):
    _model.model_rebuild()
