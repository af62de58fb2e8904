# calc_runtime.py

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from calc.calc_config import CalcConfig
from calc.calc_datatypes import CalcError
from calc.calc_evaluator import Evaluator


@dataclass
class ExecutionResult:
    """The structured result of running one line or a script."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_index: Optional[int] = None
    error_line: Optional[int] = None
    side_effects: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        """Formats an error message with line and column if available."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        where = []
        if self.error_line is not None:
            where.append(f"line {self.error_line}")
        if self.error_index is not None:
            where.append(f"col {self.error_index + 1}")
        if where and not msg.startswith("Error on "):
            return f"Error on {', '.join(where)}: {msg}"
        return msg


class LineRunner:
    """Owns the accumulator and feeds it through the evaluator one line at a time."""

    def __init__(self, config: Optional[CalcConfig] = None, initial: Optional[float] = None):
        self.config = config or CalcConfig()
        self.initial = float(self.config.initial if initial is None else initial)
        self.value = self.initial
        self.side_effects: List[Dict] = []
        self.evaluator = Evaluator(sink=self._warn, debug=self.config.debug or None)

    def _warn(self, message: str):
        # Diagnostics that do not fail the line (non-positive SQRT operand).
        self.side_effects.append({'topics': ['stderr'], 'level': 'warning', 'message': message})

    def _error(self, message: str):
        self.side_effects.append({'topics': ['stderr'], 'level': 'error', 'message': message})

    def reset(self) -> float:
        self.value = self.initial
        return self.value

    def handle_line(self, line: str) -> ExecutionResult:
        """Evaluates one instruction against the current accumulator."""
        self.side_effects = []
        return self._run_line(line)

    def _run_line(self, line: str, lineno: Optional[int] = None) -> ExecutionResult:
        start = len(self.side_effects)
        try:
            self.value = self.evaluator.execute(self.value, line)
        except CalcError as e:
            self._error(e.message)
            return ExecutionResult(
                status='error',
                value=self.value,
                error_message=e.message,
                error_index=e.index,
                error_line=lineno,
                side_effects=self.side_effects[start:],
            )
        return ExecutionResult(status='success', value=self.value, side_effects=self.side_effects[start:])

    def handle_script(self, source: str) -> ExecutionResult:
        """Runs every instruction line in `source`, threading the accumulator.

        Blank lines and `#` comments are skipped. A failing line leaves the
        accumulator unchanged and the run continues; the first failure is
        reported on the result.
        """
        self.side_effects = []
        first_error: Optional[ExecutionResult] = None
        for lineno, line in enumerate(source.splitlines(), start=1):
            if not line.strip() or line.lstrip().startswith("#"):
                continue
            res = self._run_line(line, lineno)
            if res.status == 'error' and first_error is None:
                first_error = res

        if first_error is not None:
            return ExecutionResult(
                status='error',
                value=self.value,
                error_message=first_error.error_message,
                error_index=first_error.error_index,
                error_line=first_error.error_line,
                side_effects=self.side_effects,
            )
        return ExecutionResult(status='success', value=self.value, side_effects=self.side_effects)
