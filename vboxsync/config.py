"""Configuration dataclass and TOML persistence for vboxsync."""

from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, replace
from pathlib import Path

import ubelt as ub

from .util import expand

DEFAULT_VBOXCONFIG = '~/.VirtualBox/VirtualBox.xml'


@dataclass
class VBoxSyncConfig:
    vboxmanage: str = 'VBoxManage'
    vboxconfig: str = DEFAULT_VBOXCONFIG
    verbosity: int = 1

    @property
    def base_dir(self) -> str:
        """Directory that relative media locations are resolved against."""
        return str(Path(expand(self.vboxconfig)).parent)

    def expanded_paths(self) -> 'VBoxSyncConfig':
        """Copy with ``~`` and environment variables expanded."""
        return replace(self, vboxconfig=expand(self.vboxconfig))


def config_path() -> Path:
    root = ub.Path.appdir('vboxsync', type='config').ensuredir()
    return Path(root) / 'config.toml'


def _toml_escape(s: str) -> str:
    return s.replace('\\', '\\\\').replace('"', '\\"')


def dump_toml(cfg: VBoxSyncConfig) -> str:
    lines: list[str] = []
    for k, v in asdict(cfg).items():
        if isinstance(v, bool):
            lines.append(f'{k} = {"true" if v else "false"}')
        elif isinstance(v, int):
            lines.append(f'{k} = {v}')
        else:
            lines.append(f'{k} = "{_toml_escape(str(v))}"')
    return '\n'.join(lines) + '\n'


def load(path: Path | None = None) -> VBoxSyncConfig:
    fpath = path or config_path()
    cfg = VBoxSyncConfig()
    if not fpath.exists():
        return cfg
    raw = tomllib.loads(fpath.read_text(encoding='utf-8'))
    for k, v in raw.items():
        if hasattr(cfg, k) and k != 'base_dir':
            setattr(cfg, k, v)
    cfg.verbosity = int(cfg.verbosity)
    return cfg


def save(cfg: VBoxSyncConfig, path: Path | None = None) -> Path:
    fpath = path or config_path()
    fpath.parent.mkdir(parents=True, exist_ok=True)
    fpath.write_text(dump_toml(cfg), encoding='utf-8')
    return fpath
