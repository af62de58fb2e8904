"""
Defines the core data types for the calc evaluator.

This module provides the operation variant with its arity table, the parse
cursor threaded through a single evaluation, and the error taxonomy raised by
the parser and evaluator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

MAX_DECIMAL_DIGITS = 10

# =================================================================
# Operations
# =================================================================

class Op(Enum):
    """The closed set of operations an instruction line can name."""
    ERR = "err"
    SET = "set"
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    REM = "rem"
    NEG = "neg"
    POW = "pow"
    SQRT = "sqrt"

    @property
    def arity(self) -> int:
        return ARITY[self]

    @property
    def is_unary(self) -> bool:
        return ARITY[self] == 1

    @property
    def is_binary(self) -> bool:
        return ARITY[self] == 2


# Single source of truth for unary/binary dispatch.
ARITY: Dict[Op, int] = {
    # error
    Op.ERR: 0,
    # unary
    Op.NEG: 1,
    Op.SQRT: 1,
    # binary
    Op.SET: 2,
    Op.ADD: 2,
    Op.SUB: 2,
    Op.MUL: 2,
    Op.DIV: 2,
    Op.REM: 2,
    Op.POW: 2,
}

# One-character operation tokens. SET has none (digit lookahead) and SQRT is
# matched as a keyword.
SYMBOLS: Dict[str, Op] = {
    "+": Op.ADD,
    "-": Op.SUB,
    "*": Op.MUL,
    "/": Op.DIV,
    "%": Op.REM,
    "_": Op.NEG,
    "^": Op.POW,
}

KEYWORDS: Dict[str, Op] = {
    "SQRT": Op.SQRT,
}

FOLD_OPEN = "("
FOLD_CLOSE = ")"


# =================================================================
# Parse state
# =================================================================

@dataclass
class ParseCursor:
    """Position in the line being evaluated, plus whether fold mode is on."""
    index: int = 0
    fold: bool = False

    def at_end(self, line: str) -> bool:
        return self.index >= len(line)

    def peek(self, line: str) -> str:
        """Returns the current character, or '' past the end of the line."""
        if self.index < len(line):
            return line[self.index]
        return ""

    def advance(self, n: int = 1) -> None:
        self.index += n

    def rollback(self, n: int) -> None:
        if n > self.index:
            raise ValueError(f"cannot roll back {n} characters from index {self.index}")
        self.index -= n


# =================================================================
# Errors
# =================================================================

class CalcError(Exception):
    """Base class for evaluation failures. The message is the diagnostic."""
    def __init__(self, message: str, index: Optional[int] = None, suffix: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.index = index
        self.suffix = suffix


class UnknownOperation(CalcError):
    def __init__(self, line: str, index: int = 0):
        super().__init__(f"Unknown operation {line}", index=index)
        self.line = line


class MalformedFold(CalcError):
    def __init__(self, line: str, index: int):
        super().__init__(f"Incorrect folded operation specified {line}", index=index)
        self.line = line


class ArgumentParseError(CalcError):
    def __init__(self, index: int, suffix: str):
        super().__init__(f"Argument parsing error at {index}: '{suffix}'", index=index, suffix=suffix)


class ArgumentNotFullyParsed(CalcError):
    def __init__(self, index: int, suffix: str):
        super().__init__(f"Argument isn't fully parsed, suffix left: '{suffix}'", index=index, suffix=suffix)


class MissingArgument(CalcError):
    def __init__(self, index: Optional[int] = None):
        super().__init__("No argument for a binary operation", index=index)


class InvalidOperand(CalcError):
    def __init__(self, message: str, operand: float):
        super().__init__(message)
        self.operand = operand


class UnexpectedSuffix(CalcError):
    def __init__(self, index: int, suffix: str):
        super().__init__(f"Unexpected suffix for a unary operation: '{suffix}'", index=index, suffix=suffix)


class ConfigError(Exception):
    """Raised when a configuration file is malformed."""
    pass
