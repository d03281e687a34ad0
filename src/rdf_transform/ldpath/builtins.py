"""
LDPath built-in functions and field types.

Functions live in the ``fn:`` namespace and receive one value list per
argument selector. Reducers are the functions that collapse a whole value
sequence; when one wraps a field's selector it becomes the field's reducer.
Field types (``:: xsd:int``) convert each extracted node to a Python value.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from rdflib import Literal, URIRef
from rdflib.namespace import XSD
from rdflib.term import Node

from ..exceptions import TraversalError
from ..graph import FUNCTIONS_NS


# ============================================================
# FUNCTIONS
# ============================================================

FunctionImpl = Callable[[List[List[Node]]], List[Node]]


@dataclass(frozen=True)
class SelectorFunction:
    """
    A function callable from a selector as ``fn:name(arg, ...)``.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    """
    name: str
    impl: FunctionImpl
    min_args: int = 1
    max_args: Optional[int] = 1
    reducer: bool = False

    @property
    def iri(self) -> str:
        return FUNCTIONS_NS + self.name

    def accepts_arity(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def arity_text(self) -> str:
        if self.max_args == self.min_args:
            return str(self.min_args)
        if self.max_args is None:
            return f"at least {self.min_args}"
        return f"{self.min_args} to {self.max_args}"

    def __call__(self, args: List[List[Node]]) -> List[Node]:
        return self.impl(args)


def _flatten(args: List[List[Node]]) -> List[Node]:
    return [value for values in args for value in values]


def _first_value(values: List[Node]) -> Optional[str]:
    return str(values[0]) if values else None


def _rewrap(node: Node, text: str) -> Literal:
    """New string literal keeping the language tag of node, if any."""
    lang = node.language if isinstance(node, Literal) else None
    return Literal(text, lang=lang)


def _fn_first(args: List[List[Node]]) -> List[Node]:
    values = _flatten(args)
    return values[:1]


def _fn_last(args: List[List[Node]]) -> List[Node]:
    values = _flatten(args)
    return values[-1:]


def _fn_count(args: List[List[Node]]) -> List[Node]:
    return [Literal(len(_flatten(args)))]


def _fn_concat(args: List[List[Node]]) -> List[Node]:
    values = _flatten(args)
    if not values:
        return []
    return [Literal("".join(str(v) for v in values))]


def _fn_sort(args: List[List[Node]]) -> List[Node]:
    return sorted(_flatten(args), key=lambda v: (str(v), v.n3()))


def _fn_upper(args: List[List[Node]]) -> List[Node]:
    return [_rewrap(v, str(v).upper()) for v in _flatten(args)]


def _fn_lower(args: List[List[Node]]) -> List[Node]:
    return [_rewrap(v, str(v).lower()) for v in _flatten(args)]


def _fn_trim(args: List[List[Node]]) -> List[Node]:
    return [_rewrap(v, str(v).strip()) for v in _flatten(args)]


def _fn_strlen(args: List[List[Node]]) -> List[Node]:
    return [Literal(len(str(v))) for v in _flatten(args)]


def _fn_replace(args: List[List[Node]]) -> List[Node]:
    values, pattern_values, replacement_values = args
    pattern = _first_value(pattern_values)
    replacement = _first_value(replacement_values)
    if pattern is None or replacement is None:
        return []
    try:
        regex = re.compile(pattern)
        return [_rewrap(v, regex.sub(replacement, str(v))) for v in values]
    except re.error as e:
        raise TraversalError(f"fn:replace failed ({e})", fragment=pattern) from e


BUILTIN_FUNCTIONS: Dict[str, SelectorFunction] = {
    fn.iri: fn for fn in (
        # Reducers
        SelectorFunction("first", _fn_first, 1, None, reducer=True),
        SelectorFunction("last", _fn_last, 1, None, reducer=True),
        SelectorFunction("count", _fn_count, 1, None, reducer=True),
        SelectorFunction("concat", _fn_concat, 1, None, reducer=True),
        # Value functions
        SelectorFunction("sort", _fn_sort, 1, None),
        SelectorFunction("upper", _fn_upper),
        SelectorFunction("lower", _fn_lower),
        SelectorFunction("trim", _fn_trim),
        SelectorFunction("strlen", _fn_strlen),
        SelectorFunction("replace", _fn_replace, 3, 3),
    )
}


def get_builtin_functions() -> Dict[str, SelectorFunction]:
    """Get a copy of the built-in function registry, keyed by IRI."""
    return dict(BUILTIN_FUNCTIONS)


# ============================================================
# FIELD TYPES
# ============================================================

Converter = Callable[[Node], Any]


def _to_string(node: Node) -> str:
    return str(node)


def _to_uri(node: Node) -> str:
    if isinstance(node, Literal):
        raise ValueError(f"Not an IRI: {node!r}")
    return str(node)


def _to_int(node: Node) -> int:
    return int(str(node).strip())


def _to_float(node: Node) -> float:
    return float(str(node).strip())


def _to_bool(node: Node) -> bool:
    text = str(node).strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise ValueError(f"Not a boolean: {node!r}")


def _to_datetime(node: Node) -> datetime:
    value = Literal(str(node), datatype=XSD.dateTime).toPython()
    if not isinstance(value, datetime):
        raise ValueError(f"Not a dateTime: {node!r}")
    return value


def _to_date(node: Node) -> date:
    value = Literal(str(node), datatype=XSD.date).toPython()
    if not isinstance(value, date):
        raise ValueError(f"Not a date: {node!r}")
    return value


FIELD_TYPES: Dict[str, Converter] = {
    str(XSD.string): _to_string,
    str(XSD.anyURI): _to_uri,
    str(XSD.int): _to_int,
    str(XSD.integer): _to_int,
    str(XSD.long): _to_int,
    str(XSD.short): _to_int,
    str(XSD.decimal): _to_float,
    str(XSD.double): _to_float,
    str(XSD.float): _to_float,
    str(XSD.boolean): _to_bool,
    str(XSD.date): _to_date,
    str(XSD.dateTime): _to_datetime,
}


@dataclass(frozen=True)
class FieldType:
    """Conversion applied to every value of a field."""
    iri: URIRef
    converter: Converter

    def convert(self, values: List[Node]) -> List[Any]:
        """Convert values, dropping the ones that do not fit the type."""
        converted = []
        for value in values:
            try:
                converted.append(self.converter(value))
            except ValueError:
                continue
        return converted


__all__ = [
    "SelectorFunction",
    "BUILTIN_FUNCTIONS",
    "get_builtin_functions",
    "FIELD_TYPES",
    "FieldType",
]
