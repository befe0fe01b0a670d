"""Mirror VirtualBox resources into Python models with change-tracked saves."""

from __future__ import annotations

from loguru import logger

from .attributes import AttributeRegistry, AttributeSpec
from .config import VBoxSyncConfig
from .errors import (
    AlreadyDestroyed,
    CommandFailed,
    ReadOnlyAttribute,
    UnknownAttribute,
    ValidationFailed,
    VBoxSyncError,
)
from .hard_drive import HardDrive
from .media import MediaRegistry
from .model import Model, Rule, presence
from .relationship import DocumentSource, HandleSource, RelationshipBinding
from .vm import VirtualMachine
from .vrdp_server import VRDPServer

__version__ = '0.1.0'

# Library code stays silent unless the application opts in.
logger.disable('vboxsync')

__all__ = [
    'AlreadyDestroyed',
    'AttributeRegistry',
    'AttributeSpec',
    'CommandFailed',
    'DocumentSource',
    'HandleSource',
    'HardDrive',
    'MediaRegistry',
    'Model',
    'ReadOnlyAttribute',
    'RelationshipBinding',
    'Rule',
    'UnknownAttribute',
    'VBoxSyncConfig',
    'VBoxSyncError',
    'ValidationFailed',
    'VirtualMachine',
    'VRDPServer',
    'presence',
]
