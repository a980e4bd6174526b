"""Serializer from structured forms to Epilog source text.

A form is either an atom (a string, emitted verbatim) or a list whose
first element is a predicate or keyword:

    ["object", '"Foo"']                       -> object("Foo")
    ["rule", ["p", "X"], ["q", "X"], ["r", "X"]]
                                              -> p(X) :- q(X) & r(X)
    ["not", ["q", "X"]]                       -> ~q(X)

String literals must be quoted by the caller; the serializer never quotes.
"""

from __future__ import annotations

from typing import Union

__all__ = ["Form", "grind", "grindem"]

Form = Union[str, list]


def grind(form: Form) -> str:
    """Serialize a single form.

    Args:
        form: Atom or nested list form

    Returns:
        Epilog source for the form

    Raises:
        ValueError: If the form is empty or its head is not a string
    """
    if isinstance(form, str):
        return form

    if not isinstance(form, (list, tuple)) or not form:
        raise ValueError(f"Invalid form: {form!r}")

    head, *args = form
    if not isinstance(head, str):
        raise ValueError(f"Form head must be a string: {form!r}")

    if head == "rule":
        return _grind_rule(form)

    if head == "not":
        if len(args) != 1:
            raise ValueError(f"Negation takes exactly one argument: {form!r}")
        return f"~{grind(args[0])}"

    if not args:
        return head

    return f"{head}({', '.join(grind(arg) for arg in args)})"


def _grind_rule(form: list) -> str:
    if len(form) < 2:
        raise ValueError(f"Rule without head: {form!r}")

    head = grind(form[1])
    body = [grind(clause) for clause in form[2:]]
    if not body:
        return head
    return f"{head} :- {' & '.join(body)}"


def grindem(forms: list[Form]) -> str:
    """Serialize a sequence of forms, one per line."""
    return "\n".join(grind(form) for form in forms)
