"""
Precedence resolution over mixfix groups
Generalized precedence climbing: atoms and prefix operators start an
expression, postfix and infix operators extend it while they bind at least
as tightly as the current minimum binding power. Inner forests of a group
are always parsed as independent expressions.
"""

from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union
from dataclasses import dataclass

from grouping import Group
from error_handling import (
    EmptyExpression, GrammarError, MisplacedOperator, MixfixInternalError, NestingTooDeep,
    UnknownOperator
)


# ============================================================================
# FIXITIES
# ============================================================================

class Fixity:
    """How an operator combines with the groups around it"""
    # Operand slot before the head, rendered as a leading underscore
    has_prefix = False
    # Operand slot after the last marker, rendered as a trailing underscore
    has_postfix = False

    def powers(self) -> Tuple[int, ...]:
        return ()


@dataclass(frozen=True)
class Nonfix(Fixity):
    """Atomic: no operands from the surrounding stream"""

    def __str__(self) -> str:
        return "nonfix"


@dataclass(frozen=True)
class Prefix(Fixity):
    """One right operand parsed at right_power"""
    right_power: int
    has_prefix = True

    def powers(self) -> Tuple[int, ...]:
        return (self.right_power,)

    def __str__(self) -> str:
        return f"prefix({self.right_power})"


@dataclass(frozen=True)
class Postfix(Fixity):
    """Takes the expression to its left when left_power reaches the minimum"""
    left_power: int
    has_postfix = True

    def powers(self) -> Tuple[int, ...]:
        return (self.left_power,)

    def __str__(self) -> str:
        return f"postfix({self.left_power})"


@dataclass(frozen=True)
class Infix(Fixity):
    left_power: int
    right_power: int
    has_prefix = True
    has_postfix = True

    def powers(self) -> Tuple[int, ...]:
        return (self.left_power, self.right_power)

    def __str__(self) -> str:
        return f"infix({self.left_power}, {self.right_power})"


class FixityTable:
    """Fixities looked up by head marker"""

    def __init__(self, fixities: Mapping[str, Fixity]):
        self.fixities: Dict[str, Fixity] = {}
        for head, fixity in fixities.items():
            if not isinstance(fixity, Fixity) or type(fixity) is Fixity:
                raise GrammarError(f"Fixity for '{head}' must be nonfix, prefix, postfix or infix, got {fixity!r}")
            for power in fixity.powers():
                # bool is an int subclass
                if isinstance(power, bool) or not isinstance(power, int) or power < 0:
                    raise GrammarError(f"Binding power for '{head}' must be a non-negative integer, got {power!r}")
            self.fixities[head] = fixity

    def lookup(self, group: Group) -> Fixity:
        fixity = self.fixities.get(group.head)
        if fixity is None:
            raise UnknownOperator(group.head, group.span)
        return fixity

    def get(self, head: str, default: Optional[Fixity] = None) -> Optional[Fixity]:
        return self.fixities.get(head, default)

    def items(self):
        return self.fixities.items()

    def __contains__(self, head: str) -> bool:
        return head in self.fixities

    def __len__(self) -> int:
        return len(self.fixities)


def as_fixity_table(fixities: Union[FixityTable, Mapping[str, Fixity]]) -> FixityTable:
    """Accept a plain mapping wherever a fixity table is expected"""
    if isinstance(fixities, FixityTable):
        return fixities
    return FixityTable(fixities)


# ============================================================================
# APPLICATIONS
# ============================================================================

@dataclass(frozen=True)
class Application:
    """An operator, or atom, applied to its arguments in left-to-right order"""
    name: str
    arguments: Tuple['Application', ...] = ()

    def __str__(self) -> str:
        result = f"({self.name}"
        for argument in self.arguments:
            result += f" {argument}"
        return result + ")"


class GroupCursor:
    """Read position over a group forest"""

    def __init__(self, groups: Sequence[Group]):
        self.groups = list(groups)
        self.position = 0

    def peek(self) -> Optional[Group]:
        if self.position < len(self.groups):
            return self.groups[self.position]
        return None

    def next(self) -> Optional[Group]:
        group = self.peek()
        if group is not None:
            self.position += 1
        return group

    def at_end(self) -> bool:
        return self.position >= len(self.groups)

    def remaining(self) -> List[Group]:
        return self.groups[self.position:]


# ============================================================================
# RESOLUTION
# ============================================================================

def describe_groups(groups: Iterable[Group], fixities: FixityTable) -> List[str]:
    """Display names of groups, treating unknown heads as atoms"""
    return [g.show_name(fixities.get(g.head, Nonfix())) for g in groups]


def parse_expression(cursor: GroupCursor, fixities: FixityTable, min_power: int,
                     debug: bool = False, needed_by: Optional[Group] = None) -> Application:
    """Parse one expression from the cursor, stopping at the first operator binding below min_power

    needed_by is the operator whose operand is being parsed, used to locate
    an EmptyExpression error.
    """
    if debug:
        print(f"Processing groups {describe_groups(cursor.remaining(), fixities)}")

    group = cursor.next()
    if group is None:
        raise EmptyExpression(needed_by.span if needed_by is not None else None)

    fixity = fixities.lookup(group)
    if isinstance(fixity, Nonfix):
        lhs = Application(group.show_name(fixity), tuple(inner_arguments(group, fixities, debug)))
    elif isinstance(fixity, Prefix):
        arguments = inner_arguments(group, fixities, debug)
        arguments.append(parse_expression(cursor, fixities, fixity.right_power, debug, group))
        lhs = Application(group.show_name(fixity), tuple(arguments))
    else:
        raise MisplacedOperator(group.head, "start", group.span)

    while not cursor.at_end():
        group = cursor.peek()
        fixity = fixities.lookup(group)
        if debug:
            print(f"lhs: {lhs}, op: {group.show_name(fixity)}")
            print(f"rhs from: {describe_groups(cursor.remaining(), fixities)}")

        if isinstance(fixity, Postfix):
            if fixity.left_power < min_power:
                break
            cursor.next()
            arguments = [lhs] + inner_arguments(group, fixities, debug)
            lhs = Application(group.show_name(fixity), tuple(arguments))
        elif isinstance(fixity, Infix):
            if fixity.left_power < min_power:
                break
            cursor.next()
            arguments = [lhs] + inner_arguments(group, fixities, debug)
            arguments.append(parse_expression(cursor, fixities, fixity.right_power, debug, group))
            lhs = Application(group.show_name(fixity), tuple(arguments))
        else:
            # Juxtaposed atoms are not an application; the caller decides
            break

    return lhs


def inner_arguments(group: Group, fixities: FixityTable, debug: bool = False) -> List[Application]:
    """Resolve each inner forest of a group as a self-contained expression"""
    return [resolve_inner(forest, fixities, debug, group) for forest in group.inner]


def resolve_inner(forest: Sequence[Group], table: FixityTable, debug: bool = False,
                  owner: Optional[Group] = None) -> Application:
    """Resolve a forest that must be consumed entirely

    A leftover atom or prefix operator is a MisplacedOperator; any other
    leftover means the resolver itself is broken.
    """
    cursor = GroupCursor(forest)
    result = parse_expression(cursor, table, 0, debug, owner)

    leftover = cursor.peek()
    if leftover is not None:
        fixity = table.lookup(leftover)
        if isinstance(fixity, (Nonfix, Prefix)):
            raise MisplacedOperator(leftover.head, "continuation", leftover.span)
        where = f"inside '{owner.head}'" if owner is not None else "at top level"
        raise MixfixInternalError(
            f"Resolution {where} stopped at '{leftover.head}' ({fixity}) "
            f"with {len(cursor.remaining())} group(s) unconsumed"
        )
    return result


def _too_deep(groups: Sequence[Group]) -> NestingTooDeep:
    return NestingTooDeep("precedence resolution", groups[0].span if groups else None)


def resolve_forest(forest: Sequence[Group], fixities: Union[FixityTable, Mapping[str, Fixity]],
                   debug: bool = False, owner: Optional[Group] = None) -> Application:
    """Resolve a whole forest into a single application

    Every group must be consumed. Nesting deeper than the interpreter's
    recursion limit is reported as NestingTooDeep.
    """
    table = as_fixity_table(fixities)
    try:
        return resolve_inner(forest, table, debug, owner)
    except RecursionError as e:
        raise _too_deep(forest) from e


def parse(groups: Sequence[Group], fixities: Union[FixityTable, Mapping[str, Fixity]],
          min_power: int = 0, debug: bool = False) -> Tuple[Application, List[Group]]:
    """Parse one expression from groups; return it with the groups left over"""
    cursor = GroupCursor(groups)
    try:
        result = parse_expression(cursor, as_fixity_table(fixities), min_power, debug)
    except RecursionError as e:
        raise _too_deep(groups) from e
    return result, cursor.remaining()


def create_resolver(fixities: Union[FixityTable, Mapping[str, Fixity]],
                    debug: bool = False) -> Callable[[Sequence[Group]], Application]:
    """Factory returning a resolving function bound to a fixity table"""
    table = as_fixity_table(fixities)

    def resolver(forest: Sequence[Group]) -> Application:
        return resolve_forest(forest, table, debug)

    return resolver


def create_debug_resolver(fixities: Union[FixityTable, Mapping[str, Fixity]]):
    """Factory returning a resolving function that traces its progress"""
    return create_resolver(fixities, debug=True)


# ============================================================================
# DISPLAY
# ============================================================================

def pretty_print_application(application: Application, indent: int = 0) -> str:
    """Indented tree listing of an application"""
    result = "  " * indent + application.name + "\n"
    for argument in application.arguments:
        result += pretty_print_application(argument, indent + 1)
    return result


def application_to_dict(application: Application) -> Dict[str, Any]:
    """Convert an application tree to plain data"""
    return {
        "name": application.name,
        "arguments": [application_to_dict(argument) for argument in application.arguments],
    }


def iter_applications(application: Application) -> Iterator[Application]:
    """All nodes of a tree, parents before children"""
    yield application
    for argument in application.arguments:
        yield from iter_applications(argument)
