"""
Processors module for Trackarr.

Contains the tracker aggregation pipeline.
"""

from .pipeline import TrackerPipeline, PipelineResult

__all__ = ["TrackerPipeline", "PipelineResult"]
