from cloudmap.pipeline.controller import ChatPipelineController
from cloudmap.pipeline.orchestrator import JarvisOrchestrator

__all__ = ["ChatPipelineController", "JarvisOrchestrator"]
