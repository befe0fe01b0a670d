"""Shared utility helpers for subprocess execution, paths, and command formatting."""

from __future__ import annotations

import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

from .errors import CommandFailed

log = logger


@dataclass(frozen=True)
class CmdResult:
    code: int
    stdout: str
    stderr: str


def shell_join(cmd: Sequence[str]) -> str:
    return ' '.join(shlex.quote(c) for c in cmd)


def run_cmd(
    cmd: Sequence[str],
    *,
    check: bool = True,
    capture: bool = True,
    text: bool = True,
    input_text: Optional[str] = None,
    env: Optional[dict[str, str]] = None,
) -> CmdResult:
    cmd = [str(c) for c in cmd]
    log.opt(depth=1).debug('RUN: {}', shell_join(cmd))
    try:
        p = subprocess.run(
            cmd,
            input=input_text if input_text is not None else None,
            capture_output=capture,
            text=text,
            env=env,
        )
    except FileNotFoundError as ex:
        # A missing executable is reported like any other tool failure.
        res = CmdResult(127, '', str(ex))
        if check:
            raise CommandFailed(cmd[0], cmd[1:], res.stderr, res) from ex
        return res
    res = CmdResult(p.returncode, p.stdout or '', p.stderr or '')
    if check and p.returncode != 0:
        log.opt(depth=1).debug(
            'Command failed code={} cmd={} stderr={} stdout={}',
            p.returncode,
            shell_join(cmd),
            res.stderr.strip(),
            res.stdout.strip(),
        )
        raise CommandFailed(cmd[0], cmd[1:], res.stderr.strip(), res)
    if p.returncode == 0:
        log.opt(depth=1).debug('Command ok code=0 cmd={}', shell_join(cmd))
    return res


def expand(path: str) -> str:
    return os.path.expandvars(os.path.expanduser(path))
