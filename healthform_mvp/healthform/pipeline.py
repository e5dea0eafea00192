import logging
import os
from typing import Any, Optional, Protocol

from .config import Settings
from .intake import AnalysisRequest
from .llm_client import LLMClient, UserContent, build_user_content
from .models import ProfilePipelineResult
from .prompts import analysis_system_prompt, analysis_task_prompt
from .validator import validate_response

logger = logging.getLogger(__name__)

# observation flag: only emit [obs] lines when OBS=1
OBS = os.getenv("OBS", "") == "1"


def _obs(msg: str, *args: Any) -> None:
    if OBS:
        logger.info("[obs] " + msg, *args)


class AnalysisEngine(Protocol):
    def json_call(self, system: str, user: UserContent) -> str: ...


class ProfileAnalyzer:
    """
    Runs one survey submission through the analysis capability.

    The engine is anything with `json_call(system, user) -> str`; the
    default is the OpenAI-compatible LLMClient. The analyzer keeps no state
    between calls.
    """

    def __init__(self, engine: AnalysisEngine):
        self.engine = engine

    @classmethod
    def from_settings(cls, s: Settings) -> "ProfileAnalyzer":
        llm = LLMClient(
            s.openai_api_key,
            s.openai_base_url,
            s.openai_model,
            timeout_seconds=s.request_timeout_seconds,
            max_retries=s.max_retries,
        )
        return cls(llm)

    def analyze(self, request: AnalysisRequest) -> ProfilePipelineResult:
        size = len(request.content) if request.kind == "text" else len(request.data)
        logger.info("analyzing %s submission (%d %s)", request.kind, size, "chars" if request.kind == "text" else "bytes")

        system = analysis_system_prompt()
        user = build_user_content(request, analysis_task_prompt())

        _obs("before engine.json_call")
        raw = self.engine.json_call(system, user)
        _obs("after engine.json_call (%d chars)", len(raw or ""))

        result = validate_response(raw)
        logger.info(
            "analysis finished: outcome=%s stages=%s",
            result.outcome.value,
            ",".join(s.value for s in result.completed_stages()),
        )
        return result


def analyze(request: AnalysisRequest, settings: Optional[Settings] = None) -> ProfilePipelineResult:
    s = settings or Settings.from_env()
    return ProfileAnalyzer.from_settings(s).analyze(request)
