"""Logic operators (AND/OR/NOT/XOR) and the query parser that extracts them."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from .models import record_identity, serialize_item


KeyFunction = Callable[[Any], Any]


class LogicOperator(Enum):
    """The closed set of operators understood by the query language."""
    AND = "and"
    OR = "or"
    NOT = "not"
    XOR = "xor"

    @property
    def label(self) -> str:
        return self.name

    @property
    def symbol(self) -> str:
        return _OPERATOR_INFO[self]["symbol"]

    @property
    def keyboard(self) -> str:
        return _OPERATOR_INFO[self]["keyboard"]

    @property
    def description(self) -> str:
        return _OPERATOR_INFO[self]["description"]

    def combine(
        self,
        running: List[Any],
        left: List[Any],
        right: List[Any],
        key: KeyFunction = record_identity,
    ) -> List[Any]:
        """Combine the running set with the left/right term matches."""
        return _COMBINATORS[self](running, left, right, key)


_OPERATOR_INFO: Dict[LogicOperator, Dict[str, str]] = {
    LogicOperator.AND: {
        "symbol": "∧",
        "keyboard": "&",
        "description": "All conditions must be true",
    },
    LogicOperator.OR: {
        "symbol": "∨",
        "keyboard": "|",
        "description": "At least one condition must be true",
    },
    LogicOperator.NOT: {
        "symbol": "¬",
        "keyboard": "!",
        "description": "Condition must be false",
    },
    LogicOperator.XOR: {
        "symbol": "⊕",
        "keyboard": "^",
        "description": "Exactly one condition must be true",
    },
}


def _and(running, left, right, key):
    right_ids = {key(item) for item in right}
    return [item for item in left if key(item) in right_ids]


def _or(running, left, right, key):
    seen = set()
    merged = []
    for item in left + right:
        identity = key(item)
        if identity not in seen:
            seen.add(identity)
            merged.append(item)
    return merged


def _not(running, left, right, key):
    excluded = {key(item) for item in right}
    return [item for item in running if key(item) not in excluded]


def _xor(running, left, right, key):
    left_ids = {key(item) for item in left}
    right_ids = {key(item) for item in right}
    return (
        [item for item in left if key(item) not in right_ids]
        + [item for item in right if key(item) not in left_ids]
    )


_COMBINATORS = {
    LogicOperator.AND: _and,
    LogicOperator.OR: _or,
    LogicOperator.NOT: _not,
    LogicOperator.XOR: _xor,
}

# Operators must be surrounded by whitespace; "a&b" stays a single term.
_OPERATOR_SPLIT = re.compile(
    r"(\s+[&|!^]\s+|\s+AND\s+|\s+OR\s+|\s+NOT\s+|\s+XOR\s+)",
    re.IGNORECASE,
)


@dataclass
class ParsedQuery:
    """Terms and operators extracted from a raw query."""
    terms: List[str] = field(default_factory=list)
    operators: List[LogicOperator] = field(default_factory=list)
    logic: str = ""

    @property
    def has_logic(self) -> bool:
        return len(self.terms) > 1 and bool(self.operators)


def find_operator(token: str) -> Optional[LogicOperator]:
    """Resolve a keyboard symbol or keyword (any case) to an operator."""
    lowered = token.strip().lower()
    for operator in LogicOperator:
        if lowered == operator.keyboard or lowered == operator.value:
            return operator
    return None


def parse_query(query: str) -> ParsedQuery:
    """Split a raw query into terms and logic operators."""
    parsed = ParsedQuery()
    logic_parts = []

    for part in _OPERATOR_SPLIT.split(query):
        trimmed = part.strip()
        if not trimmed:
            continue

        operator = find_operator(trimmed)
        if operator is not None:
            parsed.operators.append(operator)
            logic_parts.append(operator.symbol)
        else:
            parsed.terms.append(trimmed)
            logic_parts.append(f'"{trimmed}"')

    parsed.logic = " ".join(logic_parts)
    return parsed


def _matching(items: Sequence[Any], term: str) -> List[Any]:
    needle = term.lower()
    return [item for item in items if needle in serialize_item(item).lower()]


def apply_logic(
    items: Sequence[Any],
    terms: Sequence[str],
    operators: Sequence[LogicOperator],
    key: KeyFunction = record_identity,
) -> List[Any]:
    """
    Apply operators left to right over adjacent term pairs.

    Operator ``i`` sits between ``terms[i]`` and ``terms[i + 1]``. Both term
    match sets are drawn from the running set, so there is no precedence:
    ``a AND b OR c`` means ``(a AND b)`` and then OR with ``c`` over what
    survived.

    Args:
        items: Candidate records or search results
        terms: Parsed query terms
        operators: Parsed operators
        key: Identity function used for set comparisons

    Returns:
        The filtered candidates
    """
    running = list(items)
    if len(terms) <= 1 or not operators:
        return running

    for i, operator in enumerate(operators):
        if i + 1 >= len(terms):
            logger.debug(f"Operator {operator.label} has no right-hand term, skipping")
            continue

        left_term, right_term = terms[i], terms[i + 1]
        left = _matching(running, left_term)
        right = _matching(running, right_term)
        running = operator.combine(running, left, right, key)

    return running
