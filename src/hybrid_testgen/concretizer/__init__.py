"""
Concretizer Layer - search-based concretization of path conditions
"""
from .base import SearchEngine
from .concretizer import Concretizer
from .evosuite_wrapper import EvoSuiteProcessEngine

__all__ = ['SearchEngine', 'Concretizer', 'EvoSuiteProcessEngine']
