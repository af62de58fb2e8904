from calc.calc_datatypes import Op, ARITY, ParseCursor, CalcError
from calc.calc_evaluator import Evaluator, evaluate
from calc.calc_runtime import ExecutionResult, LineRunner
from calc.calc_config import CalcConfig
