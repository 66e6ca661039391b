"""
Precedence resolution tests: binding power, associativity and operator arity
"""

import pytest
from grouping import Group, group
from precedence import (
    Application, Fixity, FixityTable, Infix, Nonfix, Postfix, Prefix, parse, resolve_forest,
    create_resolver, create_debug_resolver, pretty_print_application, application_to_dict,
    iter_applications
)
from tables import default_rules, default_fixities
from error_handling import (
    EmptyExpression, GrammarError, MisplacedOperator, MixfixInternalError, MixfixSyntaxError,
    NestingTooDeep, ResolutionError, UnknownOperator
)


def resolve(text, rules, fixities):
  """Group and resolve a whitespace-separated expression"""
  return resolve_forest(group(text.split(), rules), fixities)


class TestArithmetic:
  """The built-in arithmetic grammar"""

  @pytest.fixture
  def rules(self):
    return default_rules()

  @pytest.fixture
  def fixities(self):
    return default_fixities()

  def test_single_atom(self, rules, fixities):
    assert resolve("x", rules, fixities) == Application("x")

  def test_reference_expression(self, rules, fixities):
    result = resolve("x + x + x * x + ( x + x ) * x", rules, fixities)
    assert str(result) == (
        "(_+_ (_+_ (_+_ (x) (x)) (_*_ (x) (x))) (_*_ ((_) (_+_ (x) (x))) (x)))"
    )

  def test_reference_expression_structure(self, rules, fixities):
    x = Application("x")
    plus = lambda a, b: Application("_+_", (a, b))
    times = lambda a, b: Application("_*_", (a, b))
    paren = lambda a: Application("(_)", (a,))
    expected = plus(plus(plus(x, x), times(x, x)), times(paren(plus(x, x)), x))
    assert resolve("x + x + x * x + ( x + x ) * x", rules, fixities) == expected

  def test_left_associative(self, rules, fixities):
    assert str(resolve("x - x - x", rules, fixities)) == "(_-_ (_-_ (x) (x)) (x))"
    assert str(resolve("x / x * x", rules, fixities)) == "(_*_ (_/_ (x) (x)) (x))"

  def test_multiplication_binds_tighter(self, rules, fixities):
    assert str(resolve("x + x * x", rules, fixities)) == "(_+_ (x) (_*_ (x) (x)))"
    assert str(resolve("x * x + x", rules, fixities)) == "(_+_ (_*_ (x) (x)) (x))"

  def test_parentheses_ignore_ambient_precedence(self, rules, fixities):
    assert str(resolve("x * ( x + x )", rules, fixities)) == "(_*_ (x) ((_) (_+_ (x) (x))))"

  def test_right_associative_infix(self, rules):
    fixities = {"+": Infix(2, 1), "x": Nonfix(), "(": Nonfix()}
    result = resolve("x + x + x", [["+"], ["x"], ["(", ")"]], fixities)
    assert str(result) == "(_+_ (x) (_+_ (x) (x)))"


class TestPrefixAndPostfix:
  """Arity of prefix and postfix operators"""

  def test_prefix_consumes_one_operand(self, mixfix_rules, mixfix_fixities):
    result = resolve("neg x + x", mixfix_rules, mixfix_fixities)
    assert str(result) == "(_+_ (_neg (x)) (x))"

  @pytest.mark.parametrize("power,expected", [
      (0, "(_neg (_+_ (_*_ (x) (x)) (x)))"),
      (2, "(_+_ (_neg (_*_ (x) (x))) (x))"),
      (5, "(_+_ (_*_ (_neg (x)) (x)) (x))"),
  ])
  def test_prefix_power_decides_absorption(self, mixfix_rules, mixfix_fixities, power, expected):
    fixities = dict(mixfix_fixities, neg=Prefix(power))
    assert str(resolve("neg x * x + x", mixfix_rules, fixities)) == expected

  def test_nested_prefix(self, mixfix_rules, mixfix_fixities):
    assert str(resolve("neg neg x", mixfix_rules, mixfix_fixities)) == "(_neg (_neg (x)))"

  def test_postfix_binds_tight(self, mixfix_rules, mixfix_fixities):
    result = resolve("x + x !", mixfix_rules, mixfix_fixities)
    assert str(result) == "(_+_ (x) (!_ (x)))"

  def test_postfix_binds_loose(self, mixfix_rules, mixfix_fixities):
    fixities = dict(mixfix_fixities)
    fixities["!"] = Postfix(0)
    result = resolve("x + x !", mixfix_rules, fixities)
    assert str(result) == "(!_ (_+_ (x) (x)))"

  def test_repeated_postfix(self, mixfix_rules, mixfix_fixities):
    assert str(resolve("x ! !", mixfix_rules, mixfix_fixities)) == "(!_ (!_ (x)))"

  def test_postfix_after_prefix(self, mixfix_rules, mixfix_fixities):
    # ! at 7 outbinds neg at 5
    assert str(resolve("neg x !", mixfix_rules, mixfix_fixities)) == "(_neg (!_ (x)))"


class TestMixfixOperands:
  """Operators carrying bracketed operands between their markers"""

  def test_prefix_mixfix(self, mixfix_rules, mixfix_fixities):
    result = resolve("if x then x else x + x", mixfix_rules, mixfix_fixities)
    assert str(result) == "(_if_then_else (x) (x) (_+_ (x) (x)))"

  def test_inner_forests_parse_independently(self, mixfix_rules, mixfix_fixities):
    result = resolve("if x + x then x * x else x", mixfix_rules, mixfix_fixities)
    assert result.arguments[0] == resolve("x + x", mixfix_rules, mixfix_fixities)
    assert result.arguments[1] == resolve("x * x", mixfix_rules, mixfix_fixities)

  def test_postfix_mixfix_subscript(self, mixfix_rules, mixfix_fixities):
    result = resolve("x [ x + x ] * x", mixfix_rules, mixfix_fixities)
    assert str(result) == "(_*_ ([_]_ (x) (_+_ (x) (x))) (x))"

  def test_infix_mixfix_argument_order(self, mixfix_rules, mixfix_fixities):
    result = resolve("x ? x + x : x", mixfix_rules, mixfix_fixities)
    assert str(result) == "(_?_:_ (x) (_+_ (x) (x)) (x))"

  def test_infix_mixfix_right_associative(self, mixfix_rules, mixfix_fixities):
    result = resolve("x ? x : x ? x : x", mixfix_rules, mixfix_fixities)
    assert str(result) == "(_?_:_ (x) (x) (_?_:_ (x) (x) (x)))"


class TestParseContract:
  """parse returns the tree and the groups it did not consume"""

  def test_stops_below_min_power(self):
    forest = group("x + x * x".split(), default_rules())
    result, remaining = parse(forest, default_fixities(), 2)
    assert result == Application("x")
    assert [g.head for g in remaining] == ["+", "x", "*", "x"]

  def test_consumes_tighter_operators(self):
    forest = group("x * x + x".split(), default_rules())
    result, remaining = parse(forest, default_fixities(), 2)
    assert str(result) == "(_*_ (x) (x))"
    assert [g.head for g in remaining] == ["+", "x"]

  def test_stops_at_juxtaposition(self):
    forest = group("x x".split(), default_rules())
    result, remaining = parse(forest, default_fixities())
    assert result == Application("x")
    assert len(remaining) == 1

  def test_empty_input(self):
    with pytest.raises(EmptyExpression):
      parse([], default_fixities())


class TestResolutionErrors:
  """Unknown and misplaced operators, empty expressions"""

  @pytest.fixture
  def rules(self):
    return [["+"], ["x"], ["y"], ["(", ")"], ["!"]]

  @pytest.fixture
  def fixities(self):
    return {"+": Infix(1, 2), "x": Nonfix(), "(": Nonfix(), "!": Postfix(3)}

  def test_unknown_operator(self, rules, fixities):
    with pytest.raises(UnknownOperator) as excinfo:
      resolve("x + y", rules, fixities)
    assert excinfo.value.head == "y"

  def test_unknown_operator_in_continuation(self, rules, fixities):
    with pytest.raises(UnknownOperator) as excinfo:
      resolve("x y", rules, fixities)
    assert excinfo.value.head == "y"

  def test_unknown_operator_inside_brackets(self, rules, fixities):
    with pytest.raises(UnknownOperator):
      resolve("( y )", rules, fixities)

  def test_infix_without_left_operand(self, rules, fixities):
    with pytest.raises(MisplacedOperator) as excinfo:
      resolve("+ x", rules, fixities)
    assert excinfo.value.head == "+"
    assert excinfo.value.position == "start"

  def test_postfix_without_left_operand(self, rules, fixities):
    with pytest.raises(MisplacedOperator):
      resolve("( ! )", rules, fixities)

  def test_juxtaposed_atoms(self, rules, fixities):
    with pytest.raises(MisplacedOperator) as excinfo:
      resolve("x x", rules, fixities)
    assert excinfo.value.position == "continuation"

  def test_juxtaposed_atoms_inside_brackets(self, rules, fixities):
    with pytest.raises(MisplacedOperator):
      resolve("x + ( x x )", rules, fixities)

  def test_missing_right_operand(self, rules, fixities):
    with pytest.raises(EmptyExpression):
      resolve("x +", rules, fixities)

  def test_empty_brackets(self, rules, fixities):
    with pytest.raises(EmptyExpression):
      resolve("( )", rules, fixities)

  def test_errors_are_syntax_errors(self, rules, fixities):
    with pytest.raises(ResolutionError):
      resolve("+", rules, fixities)
    with pytest.raises(MixfixSyntaxError):
      resolve("x x", rules, fixities)

  def test_first_error_left_to_right(self, rules, fixities):
    # The empty bracket is reached before the unknown y
    with pytest.raises(EmptyExpression):
      resolve("x + ( ) + y", rules, fixities)

  def test_leftover_operator_is_internal_fault(self):
    class Mystery(Fixity):
      pass

    fixities = {"x": Nonfix(), "?": Mystery()}
    with pytest.raises(MixfixInternalError):
      resolve("x ?", [["x"], ["?"]], fixities)

  def test_internal_fault_is_not_a_syntax_error(self):
    assert not issubclass(MixfixInternalError, MixfixSyntaxError)


class TestFixityTable:
  """Fixity validation"""

  def test_negative_power_rejected(self):
    with pytest.raises(GrammarError):
      FixityTable({"+": Infix(-1, 2)})

  def test_non_integer_power_rejected(self):
    with pytest.raises(GrammarError):
      FixityTable({"-": Prefix(1.5)})
    with pytest.raises(GrammarError):
      FixityTable({"-": Prefix(True)})

  def test_non_fixity_rejected(self):
    with pytest.raises(GrammarError):
      FixityTable({"+": (1, 2)})
    with pytest.raises(GrammarError):
      FixityTable({"+": Fixity()})

  def test_lookup(self):
    table = FixityTable({"x": Nonfix()})
    assert "x" in table
    assert table.get("y") is None
    assert len(table) == 1

  def test_fixity_flags(self):
    assert (Nonfix().has_prefix, Nonfix().has_postfix) == (False, False)
    assert (Prefix(1).has_prefix, Prefix(1).has_postfix) == (True, False)
    assert (Postfix(1).has_prefix, Postfix(1).has_postfix) == (False, True)
    assert (Infix(1, 2).has_prefix, Infix(1, 2).has_postfix) == (True, True)

  def test_fixity_str(self):
    assert str(Infix(1, 2)) == "infix(1, 2)"
    assert str(Prefix(3)) == "prefix(3)"
    assert str(Postfix(4)) == "postfix(4)"
    assert str(Nonfix()) == "nonfix"


class TestResolverFactories:
  """Factories, tracing and display helpers"""

  def test_create_resolver(self):
    resolver = create_resolver(default_fixities())
    forest = group("x * x".split(), default_rules())
    assert str(resolver(forest)) == "(_*_ (x) (x))"

  def test_debug_resolver_traces(self, capsys):
    resolver = create_debug_resolver(default_fixities())
    resolver(group("x + x".split(), default_rules()))
    out = capsys.readouterr().out
    assert "Processing groups ['x', '_+_', 'x']" in out
    assert "lhs: (x), op: _+_" in out

  def test_pretty_print_application(self):
    result = resolve("x + ( x )", default_rules(), default_fixities())
    assert pretty_print_application(result) == "_+_\n  x\n  (_)\n    x\n"

  def test_application_to_dict(self):
    result = resolve("x * x", default_rules(), default_fixities())
    assert application_to_dict(result) == {
        "name": "_*_",
        "arguments": [{"name": "x", "arguments": []}, {"name": "x", "arguments": []}],
    }

  def test_iter_applications(self):
    result = resolve("x + x * x", default_rules(), default_fixities())
    assert [a.name for a in iter_applications(result)] == ["_+_", "x", "_*_", "x", "x"]


class TestDeepNesting:
  """Operand chains past the recursion limit are reported, not crashed on"""

  def test_long_prefix_chain(self, mixfix_rules, mixfix_fixities):
    with pytest.raises(NestingTooDeep) as excinfo:
      resolve("neg " * 5000 + "x", mixfix_rules, mixfix_fixities)
    assert excinfo.value.stage == "precedence resolution"

  def test_long_right_associative_chain(self, mixfix_rules, mixfix_fixities):
    with pytest.raises(NestingTooDeep):
      resolve("x" + " ? x : x" * 5000, mixfix_rules, mixfix_fixities)

  def test_deep_inner_forests(self, mixfix_fixities):
    forest = (Group("x"),)
    for _ in range(5000):
      forest = (Group("(", (")",), (forest,)),)
    with pytest.raises(NestingTooDeep):
      resolve_forest(forest, mixfix_fixities)

  def test_parse_reports_deep_chain(self, mixfix_rules, mixfix_fixities):
    with pytest.raises(NestingTooDeep):
      parse(group(("neg " * 5000 + "x").split(), mixfix_rules), mixfix_fixities)

  def test_is_a_syntax_error(self, mixfix_rules, mixfix_fixities):
    with pytest.raises(MixfixSyntaxError):
      resolve("neg " * 5000 + "x", mixfix_rules, mixfix_fixities)

  def test_moderate_prefix_chain(self, mixfix_rules, mixfix_fixities):
    result = resolve("neg " * 50 + "x", mixfix_rules, mixfix_fixities)
    assert len(list(iter_applications(result))) == 51
