"""
Explorer Layer - symbolic path exploration
"""
from .base import SymbolicEngine, ExplorationRequest, RawPath
from .path_explorer import PathExplorer
from .jbse_wrapper import JbseProcessEngine

__all__ = [
    'SymbolicEngine',
    'ExplorationRequest',
    'RawPath',
    'PathExplorer',
    'JbseProcessEngine'
]
