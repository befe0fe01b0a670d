"""Gateway to the VBoxManage command line tool."""

from __future__ import annotations

from .config import VBoxSyncConfig
from .errors import CommandFailed
from .util import run_cmd


def vboxmanage_cmd(cfg: VBoxSyncConfig | None, *args: str) -> list[str]:
    exe = cfg.vboxmanage if cfg is not None else VBoxSyncConfig().vboxmanage
    return [exe, '-q', *args]


def vboxmanage(*args: str, cfg: VBoxSyncConfig | None = None) -> str:
    """Run one VBoxManage subcommand and return its stdout.

    Raises:
        CommandFailed: when the tool exits non-zero. ``command`` is the
            subcommand name and ``arguments`` the remaining arguments.
    """
    args = tuple(str(a) for a in args)
    res = run_cmd(vboxmanage_cmd(cfg, *args), check=False, capture=True)
    if res.code != 0:
        message = (res.stderr or res.stdout or '').strip()
        raise CommandFailed(args[0] if args else '', args[1:], message, res)
    return res.stdout
