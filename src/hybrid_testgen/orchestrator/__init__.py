"""
Orchestrator - batching, scheduling and run coordination
"""
from ..core.models.batch import BatchState, DispatchTrigger, TargetBatch
from .batch_assembler import BatchAssembler
from .worker_pool import WorkerPool
from .scheduler import Deadline, DualPoolScheduler
from .coordinator import TestGenerationCoordinator

__all__ = [
    'BatchAssembler',
    'BatchState',
    'DispatchTrigger',
    'TargetBatch',
    'WorkerPool',
    'Deadline',
    'DualPoolScheduler',
    'TestGenerationCoordinator',
]
