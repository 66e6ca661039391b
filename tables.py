"""
Grammar tables: the built-in arithmetic grammar and JSON grammar files

A grammar file is a JSON object:

    {
      "rules": [["+"], ["(", ")"], ["if", "then", "else"], ["x"]],
      "fixities": {
        "+": {"fixity": "infix", "left": 1, "right": 2},
        "if": {"fixity": "prefix", "right": 0},
        "!": {"fixity": "postfix", "left": 5},
        "x": {"fixity": "nonfix"}
      }
    }
"""

import json
from typing import Any, Dict, List, Tuple

from grouping import RuleTable
from precedence import Fixity, FixityTable, Infix, Nonfix, Postfix, Prefix
from error_handling import GrammarError


def default_rules() -> RuleTable:
    """Arithmetic over the atom x with parentheses"""
    return RuleTable([
        ["+"],
        ["-"],
        ["*"],
        ["/"],
        ["(", ")"],
        ["x"],
    ])


def default_fixities() -> FixityTable:
    """+ and - below * and /, all left associative"""
    return FixityTable({
        "+": Infix(1, 2),
        "-": Infix(1, 2),
        "*": Infix(3, 4),
        "/": Infix(3, 4),
        "x": Nonfix(),
        "(": Nonfix(),
    })


def _power(head: str, entry: Dict[str, Any], key: str) -> int:
    if key not in entry:
        raise GrammarError(f"Fixity for '{head}' is missing '{key}'")
    return entry[key]


def fixity_from_dict(head: str, entry: Any) -> Fixity:
    """Build a fixity from its JSON form"""
    if not isinstance(entry, dict) or "fixity" not in entry:
        raise GrammarError(f"Fixity for '{head}' must be an object with a 'fixity' key")

    kind = entry["fixity"]
    if kind == "nonfix":
        return Nonfix()
    elif kind == "prefix":
        return Prefix(_power(head, entry, "right"))
    elif kind == "postfix":
        return Postfix(_power(head, entry, "left"))
    elif kind == "infix":
        return Infix(_power(head, entry, "left"), _power(head, entry, "right"))
    raise GrammarError(f"Unknown fixity '{kind}' for '{head}'")


def fixity_to_dict(fixity: Fixity) -> Dict[str, Any]:
    """JSON form of a fixity"""
    if isinstance(fixity, Prefix):
        return {"fixity": "prefix", "right": fixity.right_power}
    elif isinstance(fixity, Postfix):
        return {"fixity": "postfix", "left": fixity.left_power}
    elif isinstance(fixity, Infix):
        return {"fixity": "infix", "left": fixity.left_power, "right": fixity.right_power}
    return {"fixity": "nonfix"}


def grammar_from_dict(data: Any) -> Tuple[RuleTable, FixityTable]:
    """Build validated rule and fixity tables from grammar data"""
    if not isinstance(data, dict):
        raise GrammarError("Grammar must be a JSON object with 'rules' and 'fixities'")

    rules = data.get("rules")
    if not isinstance(rules, list):
        raise GrammarError("Grammar 'rules' must be a list of marker lists")
    for rule in rules:
        if not isinstance(rule, list):
            raise GrammarError(f"Syntax rule must be a list of markers, got {rule!r}")

    fixities = data.get("fixities")
    if not isinstance(fixities, dict):
        raise GrammarError("Grammar 'fixities' must be an object mapping head markers to fixities")

    return (
        RuleTable(rules),
        FixityTable({head: fixity_from_dict(head, entry) for head, entry in fixities.items()}),
    )


def grammar_to_dict(rules: RuleTable, fixities: FixityTable) -> Dict[str, Any]:
    """JSON form of a grammar"""
    rule_lists: List[List[str]] = [list(rule.markers) for rule in rules]
    return {
        "rules": rule_lists,
        "fixities": {head: fixity_to_dict(fixity) for head, fixity in fixities.items()},
    }


def load_grammar(path: str) -> Tuple[RuleTable, FixityTable]:
    """Read a JSON grammar file; a missing file raises FileNotFoundError"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, IsADirectoryError) as e:
        raise GrammarError(f"Cannot read grammar {path}: {e}") from e
    return grammar_from_dict(data)
