"""
Data management submodule: workspace files, schema validation and saving.
"""

from .core import DataCore, TrackerContext

__all__ = [
    'DataCore',
    'TrackerContext',
]
