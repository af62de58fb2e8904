"""
Scanners for a single instruction line: the operation recognizer and the
argument parser.

Both work directly on the line's characters through a ParseCursor. Nothing
here keeps state between lines.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from calc.calc_datatypes import (
    Op, ParseCursor, SYMBOLS, KEYWORDS, FOLD_OPEN, FOLD_CLOSE, MAX_DECIMAL_DIGITS,
    UnknownOperation, MalformedFold, ArgumentParseError, ArgumentNotFullyParsed,
)

DIGITS = "0123456789"
DECIMAL_POINT = "."
# Same set as C isspace() in the default locale.
WHITESPACE = " \t\n\r\v\f"


@dataclass
class KeywordMatch:
    """Outcome of matching a keyword: how many characters were read doing it."""
    matched: bool
    consumed: int


class KeywordMatcher:
    """Explicit-state matcher for one fixed keyword.

    State k means the first k characters of the keyword have matched. Every
    character read, including the one that breaks the match, counts as
    consumed, so `consumed` is exactly the distance to roll back on failure.
    """

    def __init__(self, keyword: str):
        if not keyword:
            raise ValueError("keyword must not be empty")
        self.keyword = keyword

    def match(self, line: str, start: int) -> KeywordMatch:
        state = 0
        pos = start
        while state < len(self.keyword):
            ch = line[pos] if pos < len(line) else ""
            pos += 1
            if ch != self.keyword[state]:
                return KeywordMatch(matched=False, consumed=pos - start)
            state += 1
        return KeywordMatch(matched=True, consumed=pos - start)


class OperationRecognizer:
    """Recognizes the leading operation token of a line, with optional fold wrapper."""

    def __init__(self):
        self._matchers = {kw[0]: (KeywordMatcher(kw), op) for kw, op in KEYWORDS.items()}

    def recognize(self, line: str) -> Tuple[Op, ParseCursor]:
        """Returns the operation and a cursor placed just after its token.

        Raises UnknownOperation (cursor rolled back to the start of the line)
        or MalformedFold.
        """
        cursor = ParseCursor()
        if cursor.peek(line) == FOLD_OPEN:
            cursor.fold = True
            cursor.advance()

        ch = cursor.peek(line)
        if ch and ch in DIGITS:
            # The digit is the first character of the SET argument; leave it.
            return self._validate_fold(line, cursor, Op.SET), cursor

        if ch in SYMBOLS:
            cursor.advance()
            return self._validate_fold(line, cursor, SYMBOLS[ch]), cursor

        if ch in self._matchers:
            matcher, op = self._matchers[ch]
            result = matcher.match(line, cursor.index)
            cursor.advance(result.consumed)
            if result.matched:
                return self._validate_fold(line, cursor, op), cursor
            self._rollback(cursor, result.consumed)
            raise UnknownOperation(line, cursor.index)

        cursor.advance()
        self._rollback(cursor, 1)
        raise UnknownOperation(line, cursor.index)

    @staticmethod
    def rollback_distance(consumed: int, fold: bool) -> int:
        """Characters to step back so the cursor returns to the start of the line."""
        return consumed + (1 if fold else 0)

    def _rollback(self, cursor: ParseCursor, consumed: int) -> None:
        cursor.rollback(self.rollback_distance(consumed, cursor.fold))

    @staticmethod
    def _validate_fold(line: str, cursor: ParseCursor, op: Op) -> Op:
        if not cursor.fold:
            return op
        at = cursor.index
        ch = cursor.peek(line)
        if cursor.at_end(line):
            raise MalformedFold(line, at)
        cursor.advance()
        if ch != FOLD_CLOSE:
            raise MalformedFold(line, at)
        return op


def skip_ws(line: str, index: int) -> int:
    while index < len(line) and line[index] in WHITESPACE:
        index += 1
    return index


class ArgumentParser:
    """Parses one fixed-precision decimal argument starting at the cursor."""

    def __init__(self, max_digits: int = MAX_DECIMAL_DIGITS):
        self.max_digits = max_digits

    def parse(self, line: str, cursor: ParseCursor) -> Optional[float]:
        """Parses a number and advances the cursor past it.

        Returns None when no character was consumed. Raises ArgumentParseError
        on an unexpected character and ArgumentNotFullyParsed when the digit
        cap is hit with input left over.
        """
        start = cursor.index
        value = 0.0
        fraction = 1.0
        integer = True
        count = 0
        while not cursor.at_end(line) and count < self.max_digits:
            ch = line[cursor.index]
            if ch in DIGITS:
                digit = ord(ch) - ord("0")
                if integer:
                    value = value * 10 + digit
                else:
                    fraction /= 10
                    value += digit * fraction
                cursor.advance()
                count += 1
            elif ch == DECIMAL_POINT and integer:
                integer = False
                cursor.advance()
            elif ch == " " and cursor.fold:
                # Separates fold arguments; the caller skips it.
                break
            else:
                raise ArgumentParseError(cursor.index, line[cursor.index:])

        if count >= self.max_digits and not cursor.at_end(line):
            raise ArgumentNotFullyParsed(cursor.index, line[cursor.index:])
        if cursor.index == start:
            return None
        return value
