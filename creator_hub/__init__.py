"""
Creator hub client core: flyer generation jobs and creator metrics.
"""

__version__ = "0.1.0"
