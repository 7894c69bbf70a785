from .bootstrap import build_manager, build_pipeline
from .event_pipeline import EventPipeline

__all__ = ["EventPipeline", "build_manager", "build_pipeline"]
