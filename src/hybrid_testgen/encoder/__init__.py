"""
Encoder Layer - fingerprints and training records for path conditions
"""
from .fingerprint import Fingerprint
from .constraint_encoder import ConstraintEncoder, TrainingRecord, TrainingSet

__all__ = ['Fingerprint', 'ConstraintEncoder', 'TrainingRecord', 'TrainingSet']
