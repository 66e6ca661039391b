"""
Mixfix expression parser - Main Entry Point
Parses whitespace-separated expressions against a mixfix grammar
"""

import sys
import json
import argparse
from typing import List, Optional, Tuple
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from parsing import MixfixParser, create_parser
from grouping import RuleTable, forest_to_dict, pretty_print_forest
from precedence import Application, FixityTable, application_to_dict, pretty_print_application
from tables import default_rules, default_fixities, load_grammar
from error_handling import GrammarError, MixfixSyntaxError, build_error_report, format_error_report


VERSION = "mixfix 0.1.0"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='mixfix',
      description='Mixfix expression parser - grouping and precedence climbing',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s "x + x * x"                  # Parse with the built-in grammar
  %(prog)s -g grammar.json "if x then x else x"
  %(prog)s -f expr.txt --tree           # Parse a file, show an indented tree
  %(prog)s --groups "( x + x ) * x"     # Show the group forest only
  %(prog)s --debug "x + x"              # Trace grouping and resolution
  %(prog)s -i                           # Interactive mode
        """
  )

  parser.add_argument(
      'expression',
      nargs='?',
      help='Expression to parse (tokens separated by whitespace)'
  )

  parser.add_argument(
      '-f', '--file',
      help='Parse the expression stored in FILE'
  )

  parser.add_argument(
      '-g', '--grammar',
      help='JSON grammar file with rules and fixities (default: arithmetic over x)'
  )

  parser.add_argument(
      '--groups',
      action='store_true',
      help='Show the group forest instead of the application tree'
  )

  parser.add_argument(
      '--tree',
      action='store_true',
      help='Show the result as an indented tree'
  )

  parser.add_argument(
      '--json',
      action='store_true',
      help='Show the result as JSON'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace grouping and precedence resolution'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def load_tables(grammar_path: Optional[str]) -> Tuple[RuleTable, FixityTable]:
  """Grammar tables from a file, or the built-in grammar"""
  if grammar_path is None:
    return default_rules(), default_fixities()
  return load_grammar(grammar_path)


def format_application(application: Application, as_tree: bool = False, as_json: bool = False) -> str:
  """Render an application tree in the requested form"""
  if as_json:
    return json.dumps(application_to_dict(application), indent=2)
  if as_tree:
    return pretty_print_application(application).rstrip('\n')
  return str(application)


def report_error(error: MixfixSyntaxError, source_text: Optional[str]) -> None:
  """Print a syntax error with its source context"""
  print(format_error_report(build_error_report(error, source_text)), end='')


def run_once(parser: MixfixParser, text: str, filename: str, args: argparse.Namespace) -> int:
  """Parse one expression and print the result; return the exit status"""
  try:
    if args.groups:
      forest = parser.group_string(text, filename)
      if args.json:
        print(json.dumps(forest_to_dict(forest), indent=2))
      else:
        print(pretty_print_forest(forest), end='')
      return 0

    application = parser.parse_string(text, filename)
    print(format_application(application, args.tree, args.json))
    return 0

  except MixfixSyntaxError as e:
    report_error(e, text)
    return 1


def setup_readline(parser: MixfixParser) -> None:
  """Setup readline with history and completion of rule markers"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.mixfix_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run, or history not readable

  readline.set_history_length(1000)

  completions = sorted({marker for rule in parser.rules for marker in rule.markers})
  completions += [":groups", ":tree", ":grammar", ":help", "exit."]

  def completer(text, state):
    options = [c for c in completions if c.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def show_grammar(parser: MixfixParser) -> None:
  """Print the rules and fixities of the active grammar"""
  print("Rules:")
  for rule in parser.rules:
    print(f"  {rule}")
  print("Fixities:")
  for head, fixity in parser.fixities.items():
    print(f"  {head:10} {fixity}")


def run_interactive_mode(parser: MixfixParser) -> None:
  """Read expressions line by line and print their trees"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit.' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if parser.debug:
    print("Debug mode enabled")
  print()

  setup_readline(parser)

  while True:
    try:
      code = input("mixfix> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    text = code.strip()
    if text == "exit.":
      break
    if not text:
      continue

    if text == ":help":
      print("REPL Commands:")
      print("  <expr>            - Show the application tree")
      print("  :groups <expr>    - Show the group forest")
      print("  :tree <expr>      - Show the application tree indented")
      print("  :grammar          - Show rules and fixities")
      print("  :help             - Show this help")
      print("  exit.             - Exit REPL")
      continue

    if text == ":grammar":
      show_grammar(parser)
      continue

    try:
      if text.startswith(":groups "):
        source = text[len(":groups "):]
        print(pretty_print_forest(parser.group_string(source, "<repl>")), end='')
      elif text.startswith(":tree "):
        source = text[len(":tree "):]
        print(format_application(parser.parse_string(source, "<repl>"), as_tree=True))
      else:
        source = text
        print(f"=> {parser.parse_string(source, '<repl>')}")
    except MixfixSyntaxError as e:
      report_error(e, source)


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for the mixfix parser"""
  if argv is None:
    argv = sys.argv[1:]
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  try:
    rules, fixities = load_tables(args.grammar)
  except FileNotFoundError:
    print(f"Error: Grammar file '{args.grammar}' not found")
    return 1
  except GrammarError as e:
    print(f"Grammar error in '{args.grammar}': {e}")
    return 1

  parser = create_parser(rules, fixities, debug=args.debug)

  if args.file:
    try:
      content = parser.read_source(args.file)
    except FileNotFoundError:
      print(f"Error: File '{args.file}' not found")
      print(f"  Hint: Check the file path and make sure the file exists")
      return 1
    except MixfixSyntaxError as e:
      print(f"Error: {e.message}")
      print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
      return 1
    return run_once(parser, content, args.file, args)

  if args.expression is not None:
    return run_once(parser, args.expression, "<command line>", args)

  if args.interactive or not argv:
    run_interactive_mode(parser)
    return 0

  arg_parser.print_help()
  return 0


if __name__ == "__main__":
  sys.exit(main())
