"""A preprocessor that hands the book to an external program."""

from __future__ import annotations

import io
import json
import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import IO, Any

from bookpress.preprocessor import Chapter, Preprocessor, PreprocessorContext

__all__ = ["PreprocessorError", "CmdPreprocessor"]

log = logging.getLogger(__name__)


class PreprocessorError(RuntimeError):
    """Raised when an external preprocessor cannot be run or misbehaves."""


def _book_from_data(data: Any) -> list[Chapter]:
    if not isinstance(data, list):
        raise ValueError(f"expected a list of chapters, found {type(data).__name__}")
    return [Chapter.from_dict(item) for item in data]


@dataclass
class CmdPreprocessor(Preprocessor):
    """Runs a third-party program as a preprocessor.

    `supports_renderer` runs `<cmd> supports <renderer>`; exit code 0 means
    supported. `run` writes `[context, book]` as JSON to the program's stdin
    and reads the processed book as JSON from its stdout. A non-zero exit code
    while processing is an error; stderr is passed through to the user.
    """

    name: str
    cmd: str

    @staticmethod
    def parse_input(reader: IO) -> tuple[PreprocessorContext, list[Chapter]]:
        """Parse the `[context, book]` JSON written to a preprocessor's stdin."""
        try:
            data = json.loads(reader.read())
            if not isinstance(data, list) or len(data) != 2:
                raise ValueError("expected a two-element array")
            ctx = PreprocessorContext.from_dict(data[0])
            book = _book_from_data(data[1])
        except ValueError as exc:
            raise PreprocessorError(f"Unable to parse the input: {exc}") from exc
        return ctx, book

    def write_input(
        self, writer: IO[str], book: list[Chapter], ctx: PreprocessorContext
    ) -> None:
        """Write `[context, book]` as JSON to a text stream."""
        json.dump([ctx.to_dict(), [chapter.to_dict() for chapter in book]], writer)

    def _command(self) -> list[str]:
        try:
            words = shlex.split(self.cmd)
        except ValueError as exc:
            raise PreprocessorError(f"Unable to parse the command: {exc}") from exc
        if not words:
            raise PreprocessorError("Command string was empty")
        return words

    def run(self, ctx: PreprocessorContext, book: list[Chapter]) -> list[Chapter]:
        """Pipe the book through the external program and return its result."""
        args = self._command()
        buffer = io.StringIO()
        self.write_input(buffer, book, ctx)
        try:
            result = subprocess.run(
                args,
                input=buffer.getvalue().encode("utf-8"),
                stdout=subprocess.PIPE,
            )
        except OSError as exc:
            raise PreprocessorError(
                f'Unable to start the "{self.name}" preprocessor. Is it installed?'
            ) from exc

        log.debug("%s exited with output: %r", self.cmd, result)
        if result.returncode != 0:
            raise PreprocessorError(
                f'The "{self.name}" preprocessor exited unsuccessfully with '
                f"exit status: {result.returncode} status"
            )

        try:
            return _book_from_data(json.loads(result.stdout))
        except ValueError as exc:
            raise PreprocessorError(
                f'Unable to parse the preprocessed book from "{self.name}" processor'
            ) from exc

    def supports_renderer(self, renderer: str) -> bool:
        """Ask the program whether it supports `renderer`."""
        log.debug(
            'Checking if the "%s" preprocessor supports "%s"', self.name, renderer
        )
        try:
            args = self._command()
        except PreprocessorError as exc:
            log.warning(
                'Unable to create the command for the "%s" preprocessor, %s',
                self.name,
                exc,
            )
            return False

        try:
            result = subprocess.run(
                [*args, "supports", renderer], stdin=subprocess.DEVNULL
            )
        except FileNotFoundError:
            log.warning(
                'The command wasn\'t found, is the "%s" preprocessor installed?',
                self.name,
            )
            log.warning("\tCommand: %s", self.cmd)
            return False
        except OSError:
            return False
        return result.returncode == 0