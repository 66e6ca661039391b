"""
Mixfix expression parser
Chains token reading, grouping and precedence resolution over one grammar
"""

from typing import Iterable, List, Mapping, Optional, Sequence, Union

from tokens import Token, read_tokens
from grouping import Group, RuleTable, TokenCursor, as_rule_table, group_forest
from precedence import Application, Fixity, FixityTable, as_fixity_table, resolve_forest
from error_handling import MixfixSyntaxError
from tables import default_rules, default_fixities


class MixfixParser:
    """Parser for one rule table and fixity table"""

    def __init__(self, rules: Union[RuleTable, Iterable[Sequence[str]]],
                 fixities: Union[FixityTable, Mapping[str, Fixity]], debug: bool = False):
        self.rules = as_rule_table(rules)
        self.fixities = as_fixity_table(fixities)
        self.debug = debug

    def tokenize(self, text: str, filename: str = "<input>") -> List[Token]:
        """Read whitespace-separated tokens"""
        return read_tokens(text, filename)

    def group(self, tokens: Sequence[Union[str, Token]]) -> List[Group]:
        """Group a token sequence into a forest"""
        return group_forest(TokenCursor(tokens), self.rules, self.debug)

    def resolve(self, forest: Sequence[Group]) -> Application:
        """Resolve a forest into one application tree"""
        return resolve_forest(forest, self.fixities, self.debug)

    def parse_tokens(self, tokens: Sequence[Union[str, Token]]) -> Application:
        """Parse an already tokenized expression"""
        return self.resolve(self.group(tokens))

    def group_string(self, text: str, filename: str = "<input>") -> List[Group]:
        """Group source text, with source context on errors"""
        try:
            return self.group(self.tokenize(text, filename))
        except MixfixSyntaxError as e:
            _add_context(e, text)
            raise

    def parse_string(self, text: str, filename: str = "<input>") -> Application:
        """Parse source text, with source context on errors"""
        try:
            return self.parse_tokens(self.tokenize(text, filename))
        except MixfixSyntaxError as e:
            _add_context(e, text)
            raise

    def read_source(self, filepath: str) -> str:
        """Read UTF-8 source text; undecodable files are syntax errors"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise MixfixSyntaxError(f"Cannot decode file {filepath}: {e}") from e

    def parse_file(self, filepath: str) -> Application:
        """Parse an expression stored in a file"""
        return self.parse_string(self.read_source(filepath), filepath)


def _add_context(error: MixfixSyntaxError, text: str) -> None:
    if error.span is None:
        return
    lines = text.split('\n')
    if error.span.start_line <= len(lines):
        error.with_context(lines[error.span.start_line - 1].strip())


# Factory functions for creating parsers
def create_parser(rules: Optional[Union[RuleTable, Iterable[Sequence[str]]]] = None,
                  fixities: Optional[Union[FixityTable, Mapping[str, Fixity]]] = None,
                  debug: bool = False) -> MixfixParser:
    """Create a parser, defaulting to the built-in arithmetic grammar"""
    return MixfixParser(
        rules if rules is not None else default_rules(),
        fixities if fixities is not None else default_fixities(),
        debug=debug,
    )


def create_debug_parser(rules: Optional[Union[RuleTable, Iterable[Sequence[str]]]] = None,
                        fixities: Optional[Union[FixityTable, Mapping[str, Fixity]]] = None) -> MixfixParser:
    """Create a parser with debug tracing enabled"""
    return create_parser(rules, fixities, debug=True)
