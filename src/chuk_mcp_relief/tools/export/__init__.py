"""Export tools."""

from .api import register_export_tools

__all__ = ["register_export_tools"]
