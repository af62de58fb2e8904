"""
Formats accumulator values for diagnostics and for the REPL.
"""
import math

import pystache

DEFAULT_PRECISION = 6
DEFAULT_TEMPLATE = "{{value}}"


def format_number(value: float, precision: int = DEFAULT_PRECISION) -> str:
    """Formats a float the way a default C++ output stream does (%g)."""
    if math.isnan(value):
        return "-nan" if math.copysign(1.0, value) < 0 else "nan"
    if math.isinf(value):
        return "-inf" if value < 0 else "inf"
    return f"{value:.{precision}g}"


class Printer:
    """Renders accumulator values as text."""

    def __init__(self, precision: int = DEFAULT_PRECISION, template: str = DEFAULT_TEMPLATE):
        self.precision = precision
        self.template = template
        self._renderer = pystache.Renderer(escape=lambda s: s, missing_tags="strict")
        self._parsed = pystache.parse(template)

    def pformat(self, value) -> str:
        """Public entry point to format a value."""
        match value:
            case None:
                return "none"
            case bool():
                return "true" if value else "false"
            case int() | float():
                return format_number(float(value), self.precision)
            case _:
                return str(value)

    def render(self, value, **extra) -> str:
        """Applies the result template. `{{value}}` is the formatted value, `{{raw}}` the repr."""
        context = {"value": self.pformat(value), "raw": repr(value)}
        context.update(extra)
        return self._renderer.render(self._parsed, context)
