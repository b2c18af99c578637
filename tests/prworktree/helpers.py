# ruff: noqa: E402

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from prworktree import exec as exec_util


@dataclass(frozen=True)
class Reply:
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False


MISSING = object()


def ok(stdout: str = "") -> Reply:
    return Reply(stdout=stdout)


def ok_json(payload: object) -> Reply:
    return Reply(stdout=json.dumps(payload))


def fail(stderr: str = "boom", returncode: int = 1) -> Reply:
    return Reply(returncode=returncode, stderr=stderr)


def timeout() -> Reply:
    return Reply(returncode=exec_util.TIMEOUT_EXIT_CODE, timed_out=True)


def _contains(argv: Sequence[str], needle: Sequence[str]) -> bool:
    size = len(needle)
    return any(tuple(argv[i : i + size]) == tuple(needle) for i in range(len(argv) - size + 1))


class ScriptedRunner:
    """Command runner answering from (argv fragment, reply) rules.

    The first rule whose fragment appears contiguously in the argv wins.
    Unmatched commands fail the test.
    """

    def __init__(self, *rules: tuple[Sequence[str], object]) -> None:
        self.rules = list(rules)
        self.calls: list[exec_util.CommandRequest] = []

    def run(self, request: exec_util.CommandRequest) -> exec_util.CommandResult | None:
        self.calls.append(request)
        for needle, reply in self.rules:
            if not _contains(request.argv, needle):
                continue
            if reply is MISSING:
                return None
            assert isinstance(reply, Reply)
            return exec_util.CommandResult(
                argv=request.argv,
                returncode=reply.returncode,
                stdout=reply.stdout,
                stderr=reply.stderr,
                timed_out=reply.timed_out,
            )
        raise AssertionError(f"unexpected command: {request.argv}")

    def count(self, *needle: str) -> int:
        return sum(1 for call in self.calls if _contains(call.argv, needle))

    def find(self, *needle: str) -> exec_util.CommandRequest:
        for call in self.calls:
            if _contains(call.argv, needle):
                return call
        raise AssertionError(f"command not run: {needle}")


def porcelain(*entries: tuple[Path, str | None]) -> str:
    """Render ``git worktree list --porcelain`` for (path, branch) pairs."""
    blocks = []
    for index, (path, branch) in enumerate(entries):
        lines = [f"worktree {path}", f"HEAD {index:040d}"]
        if branch is None:
            lines.append("detached")
        else:
            lines.append(f"branch refs/heads/{branch}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"
