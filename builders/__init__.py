"""
Static site asset pipeline
"""
from .pipeline import AssetPipeline, PipelineError

__all__ = [
    "AssetPipeline",
    "PipelineError",
]
