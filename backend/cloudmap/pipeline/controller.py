import logging
import time
from typing import Dict, List, Optional

from cloudmap.inference.base import LLMClient
from cloudmap.ir.architecture import Architecture
from cloudmap.pipeline.context import ChatContext
from cloudmap.pipeline.stage import PipelineStage
from cloudmap.pipeline.stages import (
    ContextStage,
    InferenceStage,
    IntentStage,
    LanguageStage,
    PostProcessStage,
    PromptStage,
)

logger = logging.getLogger(__name__)


class ChatPipelineController:
    def __init__(self, client: Optional[LLMClient] = None):
        # Everything needed before the model is called
        self.prepare_stages: List[PipelineStage] = [
            IntentStage(),
            LanguageStage(),
            ContextStage(),
            PromptStage(),
        ]
        self.inference_stage = InferenceStage(client)
        self.post_process_stage = PostProcessStage()

    @property
    def stages(self) -> List[PipelineStage]:
        return self.prepare_stages + [self.inference_stage, self.post_process_stage]

    def _run_stages(self, context: ChatContext, stages: List[PipelineStage]) -> ChatContext:
        for stage in stages:
            started = time.perf_counter()
            result = stage.run(context)
            context.metrics[stage.name] = round((time.perf_counter() - started) * 1000, 2)

            # Hard stop on failure
            if not result.is_valid:
                context.errors.extend(result.errors)
                logger.warning("[Pipeline] Stage '%s' failed: %s", stage.name, result.errors)
                break

        context.metrics["total"] = round(
            sum(v for k, v in context.metrics.items() if k != "total"), 2
        )
        return context

    def new_context(
        self,
        message: str,
        architecture: Optional[Architecture] = None,
        history: Optional[List[Dict[str, str]]] = None,
        debug: bool = False,
    ) -> ChatContext:
        return ChatContext(
            message=message,
            architecture=architecture,
            history=list(history or []),
            debug=debug,
        )

    def prepare(self, context: ChatContext) -> ChatContext:
        return self._run_stages(context, self.prepare_stages)

    def finish(self, context: ChatContext) -> ChatContext:
        return self._run_stages(context, [self.post_process_stage])

    def run(
        self,
        message: str,
        architecture: Optional[Architecture] = None,
        history: Optional[List[Dict[str, str]]] = None,
        debug: bool = False,
    ) -> ChatContext:
        context = self.new_context(message, architecture, history, debug)
        return self._run_stages(context, self.stages)
