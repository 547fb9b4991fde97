"""Core models"""
from .path_condition import MethodSignature, Clause, ScopeSet, PathCondition
from .test_case import TestCase, ConcretizationFailure, TaskResult, TaskStatus
from .run_report import RunReport, RunIssue, MethodStatistics, FailureKind
from .batch import TargetBatch, BatchState, DispatchTrigger

__all__ = [
    'MethodSignature',
    'Clause',
    'ScopeSet',
    'PathCondition',
    'TestCase',
    'ConcretizationFailure',
    'TaskResult',
    'TaskStatus',
    'RunReport',
    'RunIssue',
    'MethodStatistics',
    'FailureKind',
    'TargetBatch',
    'BatchState',
    'DispatchTrigger',
]
