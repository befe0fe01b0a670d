"""Top-level modal CLI wiring, argv normalization, and logging setup."""

from __future__ import annotations

import os
import sys

import scriptconfig as scfg
from loguru import logger

from ..errors import VBoxSyncError
from ._common import _load_cfg, log
from .config import ConfigModalCLI
from .hd import HardDriveModalCLI
from .media import MediaModalCLI

# Subcommands whose first bare argument names the target medium.
_MEDIUM_COMMANDS = {'show', 'modify', 'clone', 'destroy'}


class VBoxSyncModalCLI(scfg.ModalCLI):
    """Manage VirtualBox media and settings from the command line."""

    config = ConfigModalCLI
    hd = HardDriveModalCLI
    media = MediaModalCLI


def _setup_logging(args_verbose: int, cfg_verbosity: int) -> None:
    logger.remove()
    logger.enable('vboxsync')
    effective_verbosity = args_verbose if args_verbose > 0 else cfg_verbosity
    level = 'WARNING'
    if effective_verbosity == 1:
        level = 'INFO'
    elif effective_verbosity >= 2:
        level = 'DEBUG'
    colorize = sys.stderr.isatty() and os.getenv('NO_COLOR') is None
    logger.add(
        sys.stderr,
        level=level,
        colorize=colorize,
        format='<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>',
    )
    log.debug(
        'Logging configured at {} (effective_verbosity={}, colorize={})',
        level,
        effective_verbosity,
        colorize,
    )


def _normalize_argv(argv: list[str]) -> list[str]:
    """Accept positional medium names and the ``ls`` shortcut."""
    if len(argv) >= 1 and argv[0] == 'ls':
        return ['hd', 'list', *argv[1:]]
    if len(argv) >= 2 and argv[0] == 'hd':
        sub = argv[1]
        if sub == 'ls':
            return ['hd', 'list', *argv[2:]]
        if sub in _MEDIUM_COMMANDS and len(argv) >= 3 and not argv[2].startswith('-'):
            rest = ['--medium', argv[2], *argv[3:]]
            if sub == 'clone' and len(rest) >= 3 and not rest[2].startswith('-'):
                rest = ['--medium', argv[2], '--output', *argv[3:]]
            return ['hd', sub, *rest]
    return argv


def _count_verbose(argv: list[str]) -> int:
    count = 0
    for item in argv:
        if item == '--verbose':
            count += 1
        elif item.startswith('-') and not item.startswith('--'):
            short = item[1:]
            if short and set(short) <= {'v'}:
                count += len(short)
    return count


def _config_value(argv: list[str]) -> str | None:
    if '--config' in argv:
        try:
            return argv[argv.index('--config') + 1]
        except IndexError:
            return None
    return None


def main(argv: list[str] | None = None) -> None:
    if argv is None:
        argv = sys.argv[1:]
    argv = _normalize_argv(argv)
    try:
        verbosity = _load_cfg(_config_value(argv)).verbosity
    except Exception:
        verbosity = 1
    _setup_logging(_count_verbose(argv), verbosity)

    try:
        rc = VBoxSyncModalCLI.main(argv=argv, _noexit=True)
    except VBoxSyncError as ex:
        print(f'ERROR: {ex}', file=sys.stderr)
        log.debug('Command aborted: {!r}', ex)
        sys.exit(2)

    if any(flag in argv for flag in ('-h', '--help')):
        sys.exit(0)
    if isinstance(rc, int):
        sys.exit(rc)
    sys.exit(0)
