"""
Output Layer - test source generation and persistence
"""
from .test_writer import TestWriter
from .output_assembler import OutputAssembler

__all__ = ['TestWriter', 'OutputAssembler']
