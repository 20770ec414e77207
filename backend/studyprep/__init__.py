"""
StudyPrep backend: exam preparation API with progress tracking.
"""

__version__ = "1.0.0"
