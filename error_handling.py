"""
Error taxonomy and error reporting for the mixfix parser
Syntax errors are exceptions; reports are plain dictionaries
"""

from typing import List, Optional, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from tokens import SourceSpan


# ============================================================================
# EXCEPTIONS
# ============================================================================

class MixfixSyntaxError(Exception):
    """Base class for every user-input error raised by grouping or resolution"""
    def __init__(self, message: str, span: Optional['SourceSpan'] = None,
                 index: Optional[int] = None, context: str = ""):
        self.message = message
        self.span = span
        self.index = index
        self.context = context
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.span:
            result = f"Syntax error at {self.span}: {self.message}"
        elif self.index is not None:
            result = f"Syntax error at token {self.index}: {self.message}"
        else:
            result = f"Syntax error: {self.message}"
        if self.context:
            result += f"\n  Context: {self.context}"
        return result

    def with_context(self, context: str) -> 'MixfixSyntaxError':
        """Attach the source line the error points at"""
        self.context = context
        self.args = (self._format_error(),)
        return self


class GroupingError(MixfixSyntaxError):
    """Raised while segmenting tokens into groups"""
    pass


class UnknownGroupStart(GroupingError):
    """A token starts no declared rule and is not the awaited terminator"""
    def __init__(self, token: str, span: Optional['SourceSpan'] = None,
                 index: Optional[int] = None):
        self.token = token
        super().__init__(f"No syntax rule starts with '{token}'", span, index)


class UnmatchedContinuation(GroupingError):
    """A continuation marker was required but something else (or nothing) was found"""
    def __init__(self, expected: str, found: Optional[str], head: str,
                 span: Optional['SourceSpan'] = None, index: Optional[int] = None):
        self.expected = expected
        self.found = found
        self.head = head
        if found is None:
            message = f"Expected '{expected}' to continue '{head}', found end of input"
        else:
            message = f"Expected '{expected}' to continue '{head}', found '{found}'"
        super().__init__(message, span, index)


class ResolutionError(MixfixSyntaxError):
    """Raised while resolving precedence among groups"""
    pass


class UnknownOperator(ResolutionError):
    """A group's head marker has no fixity"""
    def __init__(self, head: str, span: Optional['SourceSpan'] = None):
        self.head = head
        super().__init__(f"No fixity declared for '{head}'", span)


class MisplacedOperator(ResolutionError):
    """An operator appears where its fixity does not allow it

    position is "start" for a postfix/infix operator with no left operand,
    and "continuation" for an atom or prefix operator where a postfix/infix
    operator was required.
    """
    def __init__(self, head: str, position: str, span: Optional['SourceSpan'] = None):
        self.head = head
        self.position = position
        if position == "start":
            message = f"Expected an atom or prefix operator, found '{head}' with no left operand"
        else:
            message = f"Expected an infix or postfix operator, found '{head}'"
        super().__init__(message, span)


class EmptyExpression(ResolutionError):
    """The resolver was given no groups to parse"""
    def __init__(self, span: Optional['SourceSpan'] = None):
        super().__init__("Expected an expression, found nothing", span)


class NestingTooDeep(MixfixSyntaxError):
    """Groups or operands nest deeper than the parser can follow"""
    def __init__(self, stage: str, span: Optional['SourceSpan'] = None,
                 index: Optional[int] = None):
        self.stage = stage
        super().__init__(f"Expression nests too deeply for {stage}", span, index)


class GrammarError(Exception):
    """Invalid rule or fixity table"""
    pass


class AmbiguousRuleTable(GrammarError):
    """Two syntax rules share a head marker"""
    def __init__(self, head: str):
        self.head = head
        super().__init__(f"More than one syntax rule starts with '{head}'")


class MixfixInternalError(RuntimeError):
    """A broken invariant inside the parser, not a problem with the input"""
    pass


# ============================================================================
# ERROR REPORTS (Plain Dictionaries)
# ============================================================================

def make_error_report(
    kind: str,
    message: str,
    line: int = 0,
    column: int = 0,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None
) -> Dict:
    """Create an error report structure"""
    return {
        'kind': kind,
        'message': message,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or []
    }


def format_error_report(report: Dict) -> str:
    """Format an error report as text"""
    if report['line']:
        text = f"{report['kind']} at line {report['line']}, column {report['column']}:\n"
    else:
        text = f"{report['kind']}:\n"
    text += f"  {report['message']}\n"

    if report['expected']:
        text += f"  Expected: {', '.join(report['expected'])}\n"

    if report['got']:
        text += f"  Got: {report['got']}\n"

    if report['context']:
        text += f"  Context:\n{report['context']}\n"

    if report['suggestions']:
        text += "  Suggestions:\n"
        for suggestion in report['suggestions']:
            text += f"    - {suggestion}\n"

    return text


def get_context_lines(source_text: str, line_num: int, col_num: int,
                      width: int = 1, context_lines: int = 1) -> str:
    """Source lines around line_num with a caret under the offending token"""
    lines = source_text.split('\n')
    if not 1 <= line_num <= len(lines):
        return ""
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        context_parts.append(f"{i + 1:4d}: {lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}{'^' * max(width, 1)}")

    return '\n'.join(context_parts)


def generate_suggestions(error: MixfixSyntaxError) -> List[str]:
    """Hints for the common ways a mixfix expression goes wrong"""
    suggestions = []

    if isinstance(error, UnmatchedContinuation):
        suggestions.append(f"Add '{error.expected}' to close the group opened by '{error.head}'")
    elif isinstance(error, UnknownGroupStart):
        suggestions.append(f"Declare a syntax rule whose head marker is '{error.token}'")
    elif isinstance(error, UnknownOperator):
        suggestions.append(f"Give '{error.head}' a fixity (nonfix, prefix, postfix or infix)")
    elif isinstance(error, MisplacedOperator):
        if error.position == "start":
            suggestions.append(f"'{error.head}' needs a left operand before it")
        else:
            suggestions.append(f"Put an infix operator between the operands around '{error.head}'")
    elif isinstance(error, EmptyExpression):
        suggestions.append("Brackets must enclose an expression")
    elif isinstance(error, NestingTooDeep):
        suggestions.append("Split the expression or flatten its innermost brackets and prefix chains")

    return suggestions


def build_error_report(error: MixfixSyntaxError, source_text: Optional[str] = None) -> Dict:
    """Convert a syntax error into a report, adding source context when known"""
    line = column = 0
    context = None
    got = None
    if error.span is not None:
        line = error.span.start_line
        column = error.span.start_col
        got = f"'{error.span.text}'" if error.span.text else None
        if source_text is not None:
            context = get_context_lines(source_text, line, column, len(error.span.text))

    expected = []
    if isinstance(error, UnmatchedContinuation):
        expected = [f"'{error.expected}'"]
        got = f"'{error.found}'" if error.found is not None else "end of input"
    elif isinstance(error, MisplacedOperator):
        expected = ["atom or prefix operator"] if error.position == "start" \
            else ["infix or postfix operator"]

    return make_error_report(
        kind=type(error).__name__,
        message=error.message,
        line=line,
        column=column,
        expected=expected,
        got=got,
        context=context,
        suggestions=generate_suggestions(error)
    )
