from abc import ABC, abstractmethod

from cloudmap.ir.validation import ValidationResult
from cloudmap.pipeline.context import ChatContext


class PipelineStage(ABC):
    name: str

    @abstractmethod
    def run(self, context: ChatContext) -> ValidationResult:
        """
        Must:
        - read from context
        - write to context
        - NEVER call other stages
        """
        pass
