"""
Hybrid test generation - coordinates symbolic path exploration with
search-based concretization of the explored path conditions
"""
__version__ = "1.0.0"
