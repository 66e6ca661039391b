"""
Mixfix grouping
Segments a flat token stream into a forest of groups, one group per instance
of a syntax rule, with the tokens between a rule's markers grouped recursively
"""

from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING
from dataclasses import dataclass, field

from tokens import SourceSpan, Token, as_tokens
from error_handling import (
    AmbiguousRuleTable, GrammarError, NestingTooDeep, UnknownGroupStart, UnmatchedContinuation
)

if TYPE_CHECKING:
    from precedence import Fixity


# ============================================================================
# SYNTAX RULES
# ============================================================================

@dataclass(frozen=True)
class SyntaxRule:
    """A head marker followed by the continuation markers that must follow it"""
    markers: Tuple[str, ...]

    @property
    def head(self) -> str:
        return self.markers[0]

    @property
    def continuations(self) -> Tuple[str, ...]:
        return self.markers[1:]

    @property
    def is_atomic(self) -> bool:
        return len(self.markers) == 1

    def __str__(self) -> str:
        return " ... ".join(self.markers)


class RuleTable:
    """Syntax rules looked up by head marker

    Head markers must be unique; a table where two rules share one is
    rejected instead of silently preferring the first.
    """

    def __init__(self, rules: Iterable[Union[SyntaxRule, Sequence[str]]]):
        self.rules: Tuple[SyntaxRule, ...] = tuple(_make_rule(rule) for rule in rules)
        self._by_head: Dict[str, SyntaxRule] = {}
        for rule in self.rules:
            if rule.head in self._by_head:
                raise AmbiguousRuleTable(rule.head)
            self._by_head[rule.head] = rule

    def lookup(self, token: str) -> Optional[SyntaxRule]:
        return self._by_head.get(token)

    def heads(self) -> List[str]:
        return [rule.head for rule in self.rules]

    def __iter__(self) -> Iterator[SyntaxRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __contains__(self, head: str) -> bool:
        return head in self._by_head


def _make_rule(rule: Union[SyntaxRule, Sequence[str]]) -> SyntaxRule:
    if isinstance(rule, SyntaxRule):
        markers = rule.markers
    elif isinstance(rule, str):
        raise GrammarError(f"Syntax rule must be a sequence of markers, got the string '{rule}'")
    else:
        markers = tuple(rule)
    if not markers:
        raise GrammarError("Syntax rule needs at least a head marker")
    for marker in markers:
        if not isinstance(marker, str) or not marker or marker != marker.strip() or len(marker.split()) != 1:
            raise GrammarError(f"Invalid marker {marker!r} in syntax rule {list(markers)}")
    return SyntaxRule(tuple(markers))


def as_rule_table(rules: Union[RuleTable, Iterable[Sequence[str]]]) -> RuleTable:
    """Accept a plain list of marker lists wherever a rule table is expected"""
    if isinstance(rules, RuleTable):
        return rules
    return RuleTable(rules)


# ============================================================================
# GROUPS
# ============================================================================

@dataclass(frozen=True)
class Group:
    """One recognized instance of a syntax rule

    inner holds one forest per continuation marker: the groups found between
    the previous marker (or the head) and that marker.
    """
    head: str
    continuations: Tuple[str, ...] = ()
    inner: Tuple[Tuple['Group', ...], ...] = ()
    span: Optional[SourceSpan] = field(default=None, compare=False)

    @property
    def is_leaf(self) -> bool:
        return not self.continuations

    def show_name(self, fixity: 'Fixity') -> str:
        """Display name with an underscore at each operand slot of the fixity"""
        result = "_" if fixity.has_prefix else ""
        result += self.head
        for marker in self.continuations:
            result += "_" + marker
        if fixity.has_postfix:
            result += "_"
        return result

    def __str__(self) -> str:
        if not self.continuations:
            return self.head
        parts = [self.head]
        for forest, marker in zip(self.inner, self.continuations):
            parts.extend(str(g) for g in forest)
            parts.append(marker)
        return "[" + " ".join(parts) + "]"


class TokenCursor:
    """Read position over a token sequence"""

    def __init__(self, tokens: Sequence[Union[str, Token]]):
        self.tokens = as_tokens(tokens)
        self.position = 0

    def peek(self) -> Optional[Token]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def next(self) -> Optional[Token]:
        token = self.peek()
        if token is not None:
            self.position += 1
        return token

    def at_end(self) -> bool:
        return self.position >= len(self.tokens)

    def remaining(self) -> List[str]:
        return [t.value for t in self.tokens[self.position:]]


# ============================================================================
# GROUPING
# ============================================================================

def group_tokens(cursor: TokenCursor, rules: RuleTable, end_marker: Optional[str] = None,
                 debug: bool = False) -> List[Group]:
    """Group tokens from the cursor until end_marker (left unconsumed) or end of input

    Raises UnknownGroupStart for a token that opens no rule and is not
    end_marker, and UnmatchedContinuation when a rule's next marker is
    missing or wrong.
    """
    if debug:
        print(f"Grouping {cursor.remaining()}")

    groups = []
    while not cursor.at_end():
        token = cursor.peek()
        rule = rules.lookup(token.value)
        if rule is None:
            if token.value == end_marker:
                break
            raise UnknownGroupStart(token.value, token.span, cursor.position)

        cursor.next()
        inner = []
        for marker in rule.continuations:
            forest = group_tokens(cursor, rules, marker, debug)
            closing = cursor.peek()
            if closing is None:
                raise UnmatchedContinuation(marker, None, rule.head, token.span, cursor.position)
            if closing.value != marker:
                raise UnmatchedContinuation(marker, closing.value, rule.head, closing.span, cursor.position)
            cursor.next()
            inner.append(tuple(forest))

        groups.append(Group(rule.head, rule.continuations, tuple(inner), token.span))

    return groups


def group_forest(cursor: TokenCursor, rules: RuleTable, debug: bool = False) -> List[Group]:
    """Group everything left in the cursor, reporting overly deep nesting as a syntax error"""
    try:
        return group_tokens(cursor, rules, None, debug)
    except RecursionError as e:
        token = cursor.peek()
        raise NestingTooDeep("grouping", token.span if token is not None else None,
                             cursor.position) from e


def group(tokens: Sequence[Union[str, Token]], rules: Union[RuleTable, Iterable[Sequence[str]]],
          debug: bool = False) -> List[Group]:
    """Group a whole token sequence into a forest"""
    return group_forest(TokenCursor(tokens), as_rule_table(rules), debug)


def create_grouper(rules: Union[RuleTable, Iterable[Sequence[str]]],
                   debug: bool = False) -> Callable[[Sequence[Union[str, Token]]], List[Group]]:
    """Factory returning a grouping function bound to a rule table"""
    table = as_rule_table(rules)

    def grouper(tokens: Sequence[Union[str, Token]]) -> List[Group]:
        return group_forest(TokenCursor(tokens), table, debug)

    return grouper


def create_debug_grouper(rules: Union[RuleTable, Iterable[Sequence[str]]]):
    """Factory returning a grouping function that traces its progress"""
    return create_grouper(rules, debug=True)


# ============================================================================
# FOREST UTILITIES
# ============================================================================

def flatten_forest(forest: Iterable[Group]) -> List[str]:
    """Tokens that group back into the same forest: markers in source order"""
    tokens = []
    for g in forest:
        tokens.append(g.head)
        for inner_forest, marker in zip(g.inner, g.continuations):
            tokens.extend(flatten_forest(inner_forest))
            tokens.append(marker)
    return tokens


def structural_tokens(forest: Iterable[Group]) -> List[Tuple[str, ...]]:
    """Head and continuation markers of each group, depth first"""
    result = []
    for g in forest:
        result.append((g.head,) + g.continuations)
        for inner_forest in g.inner:
            result.extend(structural_tokens(inner_forest))
    return result


def find_groups_by_head(forest: Iterable[Group], head: str) -> List[Group]:
    """All groups with the given head marker, at any depth"""
    result = []

    def search(groups: Iterable[Group]):
        for g in groups:
            if g.head == head:
                result.append(g)
            for inner_forest in g.inner:
                search(inner_forest)

    search(forest)
    return result


def pretty_print_forest(forest: Iterable[Group], indent: int = 0) -> str:
    """Indented listing of a forest for debugging"""
    result = ""
    for g in forest:
        result += "  " * indent + g.head
        if g.span is not None:
            result += f"  @ {g.span}"
        result += "\n"
        for inner_forest, marker in zip(g.inner, g.continuations):
            result += pretty_print_forest(inner_forest, indent + 1)
            result += "  " * indent + marker + "\n"
    return result


def forest_to_dict(forest: Iterable[Group]) -> List[Dict[str, Any]]:
    """Convert a forest to plain data"""
    return [
        {
            "head": g.head,
            "continuations": list(g.continuations),
            "inner": [forest_to_dict(inner_forest) for inner_forest in g.inner],
        }
        for g in forest
    ]
