"""Run git and gh under a time budget and classify how each call ended.

Commands go through a ``CommandRunner`` so tests can script replies. A runner
returns ``None`` when the executable cannot be found, and a result with
``timed_out`` set when the budget ran out.
"""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Callable, Generic, Mapping, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

ParsedT = TypeVar("ParsedT")
ModelT = TypeVar("ModelT", bound=BaseModel)

TIMEOUT_EXIT_CODE = 124
NOT_EXECUTABLE_EXIT_CODE = 126
MISSING_COMMAND_DETAIL = "missing required command"


@dataclass(frozen=True)
class CommandRequest:
    argv: tuple[str, ...]
    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False


class CommandRunner(Protocol):
    def run(self, request: CommandRequest) -> CommandResult | None: ...


def _text(stream: object) -> str:
    return stream if isinstance(stream, str) else ""


class SubprocessCommandRunner:
    """Capture text output; report a timeout as exit code 124.

    An executable that exists but cannot be started comes back as exit code
    126 with the OS error as stderr.
    """

    def run(self, request: CommandRequest) -> CommandResult | None:
        try:
            completed = subprocess.run(
                list(request.argv),
                cwd=request.cwd,
                env=request.env,
                check=False,
                capture_output=True,
                text=True,
                timeout=request.timeout_seconds,
            )
        except FileNotFoundError:
            return None
        except OSError as exc:
            return CommandResult(request.argv, NOT_EXECUTABLE_EXIT_CODE, "", str(exc))
        except subprocess.TimeoutExpired as exc:
            return CommandResult(
                request.argv,
                TIMEOUT_EXIT_CODE,
                _text(exc.stdout),
                _text(exc.stderr),
                timed_out=True,
            )
        return CommandResult(
            request.argv, completed.returncode, _text(completed.stdout), _text(completed.stderr)
        )


_DEFAULT_COMMAND_RUNNER: CommandRunner = SubprocessCommandRunner()


@dataclass(frozen=True)
class CommandSpec(Generic[ParsedT]):
    """A request plus the parser that turns its stdout into a value."""

    request: CommandRequest
    parser: Callable[[CommandResult], ParsedT]
    context: str | None = None


class CommandParseError(ValueError):
    """Command output did not have the expected shape."""


class CallKind(str, Enum):
    """Three-way outcome of a bounded external call."""

    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed-out"
    FAILED = "failed"


@dataclass(frozen=True)
class BoundedResult(Generic[ParsedT]):
    """Outcome of a command run under a time budget.

    ``TIMED_OUT`` and ``FAILED`` stay distinct all the way up so callers can
    tell a retry-worthy budget overrun from a failure that needs new input.
    """

    kind: CallKind
    operation: str
    budget_seconds: float | None = None
    value: ParsedT | None = None
    detail: str | None = None
    malformed: bool = False

    @property
    def ok(self) -> bool:
        return self.kind is CallKind.SUCCEEDED

    @property
    def timed_out(self) -> bool:
        return self.kind is CallKind.TIMED_OUT

    def describe(self) -> str:
        """Return a one-line description of a non-successful call.

        Example:
            >>> BoundedResult(CallKind.TIMED_OUT, "gh pr create", 60).describe()
            'gh pr create timed out after 60 seconds'
        """
        if self.kind is CallKind.SUCCEEDED:
            return f"{self.operation} succeeded"
        if self.kind is CallKind.TIMED_OUT:
            budget = format_seconds(self.budget_seconds)
            return f"{self.operation} timed out after {budget} seconds"
        if self.detail:
            return f"{self.operation} failed: {self.detail}"
        return f"{self.operation} failed"


def format_seconds(value: float | None) -> str:
    if value is None:
        return "?"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def run_with_runner(
    request: CommandRequest, *, runner: CommandRunner | None = None
) -> CommandResult | None:
    return (runner or _DEFAULT_COMMAND_RUNNER).run(request)


def _missing_command_detail(request: CommandRequest) -> str:
    argv = request.argv
    if not argv:
        return MISSING_COMMAND_DETAIL
    return f"{MISSING_COMMAND_DETAIL}: {argv[0]}"


def is_missing_command(result: BoundedResult) -> bool:
    """Return whether a failed call never started because its executable is absent."""
    return result.kind is CallKind.FAILED and (result.detail or "").startswith(
        MISSING_COMMAND_DETAIL
    )


def command_output_detail(result: CommandResult) -> str:
    """Return the most useful diagnostic text from a finished command."""
    return (result.stderr or result.stdout or "").strip()


def run_bounded(
    spec: CommandSpec[ParsedT],
    *,
    operation: str,
    runner: CommandRunner | None = None,
) -> BoundedResult[ParsedT]:
    """Run a command under its request's time budget and classify the outcome.

    Never raises for command-level problems: a missing executable, a non-zero
    exit, or unparseable output all come back as ``CallKind.FAILED`` (the last
    with ``malformed`` set); a budget overrun comes back as
    ``CallKind.TIMED_OUT``.
    """
    finish = partial(
        BoundedResult, operation=operation, budget_seconds=spec.request.timeout_seconds
    )
    result = run_with_runner(spec.request, runner=runner)
    if result is None:
        return finish(CallKind.FAILED, detail=_missing_command_detail(spec.request))
    if result.timed_out:
        return finish(CallKind.TIMED_OUT, detail=command_output_detail(result) or None)
    if result.returncode != 0:
        detail = command_output_detail(result) or f"exit code {result.returncode}"
        return finish(CallKind.FAILED, detail=detail)
    try:
        value = spec.parser(result)
    except CommandParseError as exc:
        return finish(CallKind.FAILED, detail=str(exc), malformed=True)
    except ValueError as exc:
        return finish(
            CallKind.FAILED, detail=str(_parse_error(spec.context, exc)), malformed=True
        )
    return finish(CallKind.SUCCEEDED, value=value)


def _parse_error(context: str | None, reason: object) -> CommandParseError:
    where = f" ({context})" if context else ""
    return CommandParseError(f"failed to parse command output{where}: {reason}")


def _json_payload(result: CommandResult, context: str | None) -> object:
    raw = (result.stdout or "").strip()
    if not raw:
        raise _parse_error(context, "empty output")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise _parse_error(context, exc) from exc


def _validate(model_type: type[ModelT], payload: object, context: str | None) -> ModelT:
    try:
        return model_type.model_validate(payload)
    except ValidationError as exc:
        raise _parse_error(context, exc) from exc


def parse_json_model(
    result: CommandResult, *, model_type: type[ModelT], context: str | None = None
) -> ModelT:
    """Parse stdout as one JSON object of ``model_type``."""
    return _validate(model_type, _json_payload(result, context), context)


def parse_json_model_list(
    result: CommandResult, *, model_type: type[ModelT], context: str | None = None
) -> list[ModelT]:
    """Parse stdout as a JSON array of ``model_type``; blank output is ``[]``."""
    if not (result.stdout or "").strip():
        return []
    payload = _json_payload(result, context)
    if not isinstance(payload, list):
        raise _parse_error(context, "expected a JSON list")
    return [_validate(model_type, item, context) for item in payload]


def ignore_output(result: CommandResult) -> None:
    """Parser for commands whose output carries no value."""
    del result
    return None


def stdout_text(result: CommandResult) -> str:
    """Parser returning stripped stdout."""
    return (result.stdout or "").strip()
