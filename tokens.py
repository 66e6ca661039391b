"""
Source tokens for the mixfix parser
Tokens are whitespace-separated words carrying their source location
"""

from typing import List, Optional, Sequence, Union
from dataclasses import dataclass

from pyparsing import Regex, col, lineno


@dataclass(frozen=True)
class SourceSpan:
    """Source location of a single token"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


@dataclass(frozen=True)
class Token:
    """A token string, with its span when it was read from source text"""
    value: str
    span: Optional[SourceSpan] = None

    def __str__(self) -> str:
        return self.value


# Any run of non-whitespace characters is one token, Unicode included.
# Tabs are kept so scan offsets index the original text.
token_word = Regex(r"\S+").parse_with_tabs()


def read_tokens(text: str, filename: str = "<input>") -> List[Token]:
    """Split source text on whitespace, keeping line and column of each token"""
    tokens = []
    for result, start, end in token_word.scan_string(text):
        value = result[0]
        line_num = lineno(start, text)
        col_num = col(start, text)
        span = SourceSpan(filename, line_num, col_num, line_num, col_num + len(value), value)
        tokens.append(Token(value, span))
    return tokens


def as_tokens(tokens: Sequence[Union[str, Token]]) -> List[Token]:
    """Accept plain strings wherever tokens are expected"""
    return [t if isinstance(t, Token) else Token(t) for t in tokens]
