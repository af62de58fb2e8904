"""
The calc evaluator: applies a recognized operation to the accumulator.
"""
import math
import os
import sys
from typing import Callable, Optional

from calc.calc_datatypes import (
    Op, ParseCursor, CalcError, InvalidOperand, MissingArgument, UnexpectedSuffix,
)
from calc.calc_parser import OperationRecognizer, ArgumentParser, skip_ws
from calc.calc_printer import format_number

Sink = Callable[[str], None]


def stderr_sink(message: str) -> None:
    print(message, file=sys.stderr)


def c_pow(base: float, exp: float) -> float:
    """pow() with C semantics: domain errors give nan, poles and overflow give inf."""
    try:
        return math.pow(base, exp)
    except ValueError:
        if base == 0:
            # Pole: 0 raised to a negative power.
            if exp.is_integer() and int(exp) % 2 == 1:
                return math.copysign(math.inf, base)
            return math.inf
        return math.nan
    except OverflowError:
        if base < 0 and exp.is_integer() and int(exp) % 2 == 1:
            return -math.inf
        return math.inf


def c_fmod(left: float, right: float) -> float:
    """fmod() with C semantics: an infinite dividend gives nan instead of raising."""
    try:
        return math.fmod(left, right)
    except ValueError:
        return math.nan


class Evaluator:
    """Evaluates one instruction line against an accumulator.

    Holds no per-line state: the recognizer and argument parser are stateless
    and every call builds its own cursor. Diagnostics go to `sink`.
    """

    def __init__(self, sink: Optional[Sink] = None, debug: Optional[bool] = None):
        self.sink = sink or stderr_sink
        self.debug = bool(os.environ.get("CALC_DEBUG")) if debug is None else debug
        self.recognizer = OperationRecognizer()
        self.arg_parser = ArgumentParser()

    def _dbg(self, *parts):
        if self.debug:
            try:
                print("[DBG]", *parts, file=sys.stderr)
            except Exception:
                pass

    def _report(self, message: str) -> None:
        self.sink(message)

    def evaluate(self, current: float, line: str) -> float:
        """Returns the new accumulator, or `current` unchanged on any failure."""
        current = float(current)
        try:
            return self.execute(current, line)
        except CalcError as e:
            self._dbg("failed", type(e).__name__, "index", e.index)
            self._report(e.message)
            return current

    def execute(self, current: float, line: str) -> float:
        """Like evaluate, but raises CalcError instead of reporting it."""
        op, cursor = self.recognizer.recognize(line)
        self._dbg("recognized", op.name, "fold", cursor.fold, "at", cursor.index)
        match op.arity:
            case 2:
                return self.n_ary(op, current, line, cursor)
            case 1:
                if not cursor.at_end(line):
                    raise UnexpectedSuffix(cursor.index, line[cursor.index:])
                return self.unary(op, current)
            case _:
                return current

    def unary(self, op: Op, current: float) -> float:
        match op:
            case Op.NEG:
                return -current
            case Op.SQRT:
                if current > 0:
                    return math.sqrt(current)
                # Reported, but the unchanged value still counts as a result.
                self._report(f"Bad argument for SQRT: {format_number(current)}")
                return current
            case _:
                return current

    def apply(self, op: Op, left: float, right: float) -> float:
        """Applies a binary operation. Raises InvalidOperand on a zero divisor."""
        match op:
            case Op.SET:
                return right
            case Op.ADD:
                return left + right
            case Op.SUB:
                return left - right
            case Op.MUL:
                return left * right
            case Op.DIV:
                if right == 0:
                    raise InvalidOperand(f"Bad right argument for division: {format_number(right)}", right)
                return left / right
            case Op.REM:
                if right == 0:
                    raise InvalidOperand(f"Bad right argument for remainder: {format_number(right)}", right)
                return c_fmod(left, right)
            case Op.POW:
                return c_pow(left, right)
            case _:
                raise ValueError(f"{op.name} is not a binary operation")

    def n_ary(self, op: Op, current: float, line: str, cursor: ParseCursor) -> float:
        """Runs the argument loop: once, or over every argument when folding.

        Any raised error leaves `current` untouched in the caller, so partial
        fold progress is never returned.
        """
        value = current
        applied = 0
        while True:
            cursor.index = skip_ws(line, cursor.index)
            arg = self.arg_parser.parse(line, cursor)
            if arg is None:
                if cursor.fold and cursor.at_end(line) and applied >= 1:
                    break
                raise MissingArgument(cursor.index)
            value = self.apply(op, value, arg)
            applied += 1
            self._dbg("apply", op.name, arg, "->", value)
            if not (cursor.fold and not cursor.at_end(line)):
                break
        return value


def evaluate(current: float, line: str, sink: Optional[Sink] = None) -> float:
    """Evaluates `line` against `current` and returns the new accumulator."""
    return Evaluator(sink=sink).evaluate(current, line)
