"""
Test configuration for mixfix parser tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from precedence import Infix, Nonfix, Postfix, Prefix


@pytest.fixture
def mixfix_rules():
  """Rules mixing circumfix, prefix, postfix and infix forms"""
  return [
      ["+"],
      ["*"],
      ["neg"],
      ["!"],
      ["(", ")"],
      ["[", "]"],
      ["if", "then", "else"],
      ["?", ":"],
      ["x"],
  ]


@pytest.fixture
def mixfix_fixities():
  return {
      "+": Infix(1, 2),
      "*": Infix(3, 4),
      "neg": Prefix(5),
      "!": Postfix(7),
      "(": Nonfix(),
      "[": Postfix(9),
      "if": Prefix(0),
      "?": Infix(1, 0),
      "x": Nonfix(),
  }
