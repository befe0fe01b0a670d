"""Shared command base class and helpers for the vboxsync CLI."""

from __future__ import annotations

from pathlib import Path

import scriptconfig as scfg
from loguru import logger

from ..config import VBoxSyncConfig, config_path, load
from ..model import Model

log = logger


class _BaseCommand(scfg.DataConfig):
    """Base options shared by all commands."""

    config = scfg.Value(
        None, help='Path to config TOML (default: user config directory).'
    )
    verbose = scfg.Value(
        0,
        short_alias=['v'],
        isflag='counter',
        help='Increase verbosity (-v, -vv).',
    )


def _cfg_path(p: str | None) -> Path:
    return Path(p).expanduser().resolve() if p else config_path()


def _load_cfg(config_path_opt: str | None) -> VBoxSyncConfig:
    return load(_cfg_path(config_path_opt)).expanded_paths()


def _render_model(model: Model) -> str:
    data = model.as_dict()
    width = max((len(k) for k in data), default=0)
    lines = []
    for key, value in data.items():
        shown = '' if value is None else value
        lines.append(f'{key + ":":<{width + 1}} {shown}')
    return '\n'.join(lines)


def _optional(value) -> str | None:
    text = str(value).strip() if value is not None else ''
    return text or None
