"""Command implementations exposed by the Atrium CLI."""

from .port_forward import port_forward
from .start import start_workspace
from .updatemodel import update_model

__all__ = [
    "port_forward",
    "start_workspace",
    "update_model",
]
