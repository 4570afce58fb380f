# epicycles/printer.py
# Terminal output for the renderer CLI: stage lines, run summaries and errors.

import os
import sys
from typing import Optional

from application.dto.render_dto import AnimationResultDTO


class OutputPrinter:
    """
    Formats everything the CLI says to the operator.

    Results and notices go to stdout and are silenced by quiet mode;
    errors always go to stderr. Color is optional and disabled by the
    NO_COLOR environment variable.
    """

    SYMBOLS: dict[str, str] = {
        "success": "✔",
        "error": "✖",
        "warning": "!",
        "info": "·",
        "hint": "→",
    }

    COLORS: dict[str, str] = {
        "green": "32",
        "red": "31",
        "yellow": "33",
        "cyan": "36",
        "dim": "90",
    }

    COL_WIDTH: int = 10

    def __init__(self, quiet: bool = False, no_color: bool = False) -> None:
        self.quiet: bool = quiet
        self.no_color: bool = no_color or bool(os.environ.get("NO_COLOR", ""))

    def _colorize(self, text: str, code: str) -> str:
        if self.no_color:
            return text
        return f"\033[{code}m{text}\033[0m"

    def _hint_line(self, hint: str) -> str:
        return "    " + self._colorize(f"{self.SYMBOLS['hint']} {hint}", self.COLORS["cyan"])

    def success(self, title: str, details: Optional[dict[str, str]] = None) -> None:
        """Headline result plus an aligned key/value block."""
        if self.quiet:
            return
        symbol: str = self._colorize(self.SYMBOLS["success"], self.COLORS["green"])
        print(f"\n{symbol}  {self._colorize(title, self.COLORS['green'])}")
        for key, value in (details or {}).items():
            dim_key: str = self._colorize(f"{key:<{self.COL_WIDTH}}", self.COLORS["dim"])
            print(f"    {dim_key}: {value}")

    def error(self, message: str, hint: Optional[str] = None) -> None:
        """Always printed, to stderr, even when quiet."""
        symbol: str = self._colorize(self.SYMBOLS["error"], self.COLORS["red"])
        print(f"\n{symbol}  {self._colorize(message, self.COLORS['red'])}", file=sys.stderr)
        if hint:
            print(self._hint_line(hint), file=sys.stderr)

    def warning(self, message: str, hint: Optional[str] = None) -> None:
        if self.quiet:
            return
        symbol: str = self._colorize(self.SYMBOLS["warning"], self.COLORS["yellow"])
        print(f"\n{symbol} {self._colorize(message, self.COLORS['yellow'])}")
        if hint:
            print(self._hint_line(hint))

    def info(self, message: str) -> None:
        if self.quiet:
            return
        print(f"{self._colorize(self.SYMBOLS['info'], self.COLORS['cyan'])} {message}")

    def step(self, step_idx: int, total_steps: int, name: str) -> None:
        """Pipeline stage line, e.g. "[2/4] Computing spectrum"."""
        self.info(f"{self._colorize(f'[{step_idx + 1}/{total_steps}]', self.COLORS['dim'])} {name}")

    def render_summary(self, title: str, result: AnimationResultDTO, elapsed: float) -> None:
        """
        Closing report for a render run.

        A finished run gets the success block with frame count, wall time,
        effective frame rate and export location. A cancelled run gets a
        warning saying whether any stills were kept.
        """
        if result.cancelled:
            if result.export_dir and result.frames_rendered:
                hint: str = (
                    f"{result.frames_rendered} frame(s) written so far were kept "
                    f"in '{result.export_dir}'."
                )
            else:
                hint = "Nothing was saved."
            self.warning(f"Rendering cancelled after {result.frames_rendered} frame(s).", hint=hint)
            return

        details: dict[str, str] = {
            "Frames": str(result.frames_rendered),
            "Time": f"{elapsed:.1f}s",
        }
        if elapsed > 0 and result.frames_rendered:
            details["Rate"] = f"{result.frames_rendered / elapsed:.1f} frames/s"
        if result.export_dir:
            details["Output"] = result.export_dir
        if result.last_frame_path:
            details["Last"] = result.last_frame_path
        self.success(title=title, details=details)
