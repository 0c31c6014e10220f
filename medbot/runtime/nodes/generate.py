# medbot/runtime/nodes/generate.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Union

from pocketflow import AsyncNode

from medbot.config import GenerationSettings
from medbot.runtime import outcomes
from medbot.schemas.medical import LocationMedicalInfo, UserMedicalProfile

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_TEMPLATE = """You are a specialized medical AI assistant. Your responses MUST:
1. Be medically accurate and evidence-based
2. Consider the user's medical profile: {profile}
3. Consider location-specific guidelines: {location}
4. Never prescribe medications
5. Always recommend consulting healthcare professionals
6. Include relevant warnings and disclaimers
7. Use clear, professional medical terminology

Medical Query Context: {prompt}

Provide a structured response with:
- Analysis of the query
- Possible considerations
- When to seek immediate medical attention
- General recommendations
- Location-specific advice if applicable"""


@dataclass(frozen=True)
class GenerationFailed:
    reason: str


def render_system_prompt(prompt: str, profile: UserMedicalProfile, location: LocationMedicalInfo) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        profile=json.dumps(profile.model_dump()),
        location=json.dumps(location.model_dump()),
        prompt=prompt,
    )


class GenerateNode(AsyncNode):
    """Single call to shared["model_client"]; a failure routes "error".

    Never retried: nodes run with the default max_retries=1.
    """

    def __init__(self, settings: GenerationSettings, **kwargs):
        super().__init__(**kwargs)
        self.settings = settings

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "client": shared["model_client"],
            "full_prompt": render_system_prompt(shared["prompt"], shared["profile"], shared["location_info"]),
        }

    async def exec_async(self, prep: Dict[str, Any]) -> str:
        return await prep["client"].generate(
            prep["full_prompt"],
            temperature=self.settings.temperature,
            max_output_tokens=self.settings.max_output_tokens,
            model=self.settings.model,
        )

    async def exec_fallback_async(self, prep: Dict[str, Any], exc: Exception) -> GenerationFailed:
        logger.error("Model generation failed: %s", exc)
        return GenerationFailed(reason=str(exc))

    async def post_async(
        self,
        shared: Dict[str, Any],
        prep: Dict[str, Any],
        exec_res: Union[str, GenerationFailed],
    ) -> str:
        shared.setdefault("stages", []).append("generate")
        if isinstance(exec_res, GenerationFailed):
            shared["generation_error"] = exec_res.reason
            return outcomes.ERROR
        shared["generated"] = exec_res
        shared["model_used"] = self.settings.model
        shared["safety_checked"] = shared["safety"].is_safe
        return outcomes.CONTINUE
