"""Core layer - configuration, models and errors"""
from .exceptions import (
    HybridTestGenError,
    ConfigurationError,
    ResourceUnavailableError,
    ExplorationFailure,
)
from .options import (
    Options,
    OptionsBuilder,
    PoolConfig,
    Duration,
    TimeUnit,
    Visibility,
    Coverage,
    ByClass,
    ByMethod,
    ConfigRejected,
    load_options,
)

__all__ = [
    'HybridTestGenError',
    'ConfigurationError',
    'ResourceUnavailableError',
    'ExplorationFailure',
    'Options',
    'OptionsBuilder',
    'PoolConfig',
    'Duration',
    'TimeUnit',
    'Visibility',
    'Coverage',
    'ByClass',
    'ByMethod',
    'ConfigRejected',
    'load_options',
]
