from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.messages import ParseStage

"""Parse progress display with tqdm (TTY only).

Progress events (stage, percent, message) drive a single 0-100 bar. Without a TTY
(CI, pipes) no bar is created and events are only recorded, so log output stays
free of control sequences.
"""

__all__ = [
    "ParseProgressBar",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ParseProgressBar:
    """Percent bar for one parse, usable directly as the offloader's ``on_progress`` hook.

    The bar never moves backwards; a repeated or lower percent only refreshes the
    stage label and the message shown after the bar.
    """

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        self.stage: ParseStage | None = None
        self.percent = 0
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = self._open_bar() if self.enabled else None

    def _open_bar(self) -> TqdmType[Any]:
        return tqdm(
            total=100,
            desc=self.file_name,
            unit="%",
            disable=False,
            leave=True,
            position=0,
            ncols=80,
            ascii=True,
        )

    def __call__(self, stage: ParseStage, percent: int, message: str) -> None:
        advance = percent - self.percent
        self.stage = stage
        if advance > 0:
            self.percent = percent
        if self.pbar is None:
            return
        self.pbar.set_description(f"{self.file_name} [{stage.value}]")
        self.pbar.set_postfix_str(message)
        if advance > 0:
            self.pbar.update(advance)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ParseProgressBar:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
