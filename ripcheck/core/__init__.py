"""
ripcheck Core Package

This package contains the silence model, the collection tree, the boundary
classifier and the repair planner.
"""

from .models import (
    Tolerances, DetectionProfile, SilenceInterval, SilenceProfile,
    Track, Album, Artist, Library, RunOptions
)
from .exceptions import RipCheckError, ServiceError
from .classifier import BoundaryClassifier, DefectCategory, TrackClassification
from .planner import RepairPlanner, TrimPlan

__all__ = [
    'Tolerances',
    'DetectionProfile',
    'SilenceInterval',
    'SilenceProfile',
    'Track',
    'Album',
    'Artist',
    'Library',
    'RunOptions',
    'RipCheckError',
    'ServiceError',
    'BoundaryClassifier',
    'DefectCategory',
    'TrackClassification',
    'RepairPlanner',
    'TrimPlan'
]
