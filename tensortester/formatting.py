"""Display strategies for the reporter and the assertion diagnostics.

A formatter decides two things:

- how a symbolic colour name is applied to a piece of text (ANSI escape
  codes rendered through rich, or nothing at all);
- how a value is rendered inside a diagnostic (large arrays are summarised
  unless full tensors are requested).

The formatter is chosen from the run options and handed to the reporter
and the tester; no global display state is modified.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rich.color import ColorSystem
from rich.style import Style

from tensortester import arrays
from tensortester.constants import TENSOR_SUMMARY_THRESHOLD

# Outcome categories mapped to symbolic colour names
COLOURS = {
    "progress": "cyan",
    "pass": "green",
    "fail": "red",
    "error": "magenta",
}


class Formatter:
    """Plain formatter: no colour, values rendered by :meth:`describe`."""

    colour_enabled = False

    def __init__(
        self,
        full_tensors: bool = False,
        summary_threshold: int = TENSOR_SUMMARY_THRESHOLD,
    ) -> None:
        self.full_tensors = full_tensors
        self.summary_threshold = summary_threshold

    def coloured(self, text: str, colour: str | None) -> str:
        return text

    def category(self, text: str, category: str) -> str:
        """Colour *text* with the colour of an outcome category."""
        return self.coloured(text, COLOURS.get(category))

    def describe(self, value: Any) -> str:
        """Render *value* for a diagnostic message.

        Arrays are printed in full up to the summary threshold (always with
        ``full_tensors``), otherwise as their size and range. Containers are
        rendered element by element so the arrays they hold follow the same
        rule.
        """
        if isinstance(value, Mapping):
            body = ", ".join(f"{k!r}: {self._describe_item(v)}" for k, v in value.items())
            return "{" + body + "}"
        if isinstance(value, (list, tuple)):
            body = ", ".join(self._describe_item(v) for v in value)
            if isinstance(value, list):
                return f"[{body}]"
            return f"({body},)" if len(value) == 1 else f"({body})"

        backend = arrays.backend_for(value)
        if backend is None:
            return str(value)
        numel = backend.numel(value)
        if self.full_tensors or numel <= self.summary_threshold:
            return backend.render(value)
        size = "x".join(str(s) for s in backend.shape(value))
        return (
            f"Tensor of size {size}, min={backend.min(value):g}, "
            f"max={backend.max(value):g}"
        )

    def _describe_item(self, value: Any) -> str:
        if isinstance(value, (Mapping, list, tuple)) or arrays.is_array(value):
            return self.describe(value)
        return repr(value)


PlainFormatter = Formatter


class ColourFormatter(Formatter):
    """Formatter wrapping text in ANSI escape codes."""

    colour_enabled = True

    def __init__(
        self,
        full_tensors: bool = False,
        summary_threshold: int = TENSOR_SUMMARY_THRESHOLD,
        color_system: ColorSystem = ColorSystem.STANDARD,
    ) -> None:
        super().__init__(full_tensors, summary_threshold)
        self.color_system = color_system
        self._styles: dict[str, Style] = {}

    def _style(self, colour: str) -> Style:
        style = self._styles.get(colour)
        if style is None:
            style = self._styles[colour] = Style.parse(colour)
        return style

    def coloured(self, text: str, colour: str | None) -> str:
        if not colour:
            return text
        return self._style(colour).render(text, color_system=self.color_system)


def make_formatter(
    colour: bool = True,
    full_tensors: bool = False,
    summary_threshold: int = TENSOR_SUMMARY_THRESHOLD,
) -> Formatter:
    """Select the formatter matching the run options."""
    if colour:
        return ColourFormatter(full_tensors, summary_threshold)
    return PlainFormatter(full_tensors, summary_threshold)
