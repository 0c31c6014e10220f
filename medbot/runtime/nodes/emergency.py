# medbot/runtime/nodes/emergency.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pocketflow import AsyncNode

from medbot.runtime import outcomes
from medbot.schemas.medical import EmergencyCheckResult, QueryContext
from medbot.services.emergency import EmergencyDetector
from medbot.services.location_info import LocationBasedMedicalInfo


class EmergencyCheckNode(AsyncNode):
    """First stage. Routes "emergency" on any hit, else "continue".

    Prep: query text and caller-supplied location, if any
    Exec: pure keyword/pattern scan
    Post: commit result + route
    """

    def __init__(
        self,
        detector: EmergencyDetector,
        location_info: Optional[LocationBasedMedicalInfo] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.detector = detector
        self.location_info = location_info

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        context: Optional[QueryContext] = shared.get("context")
        country = context.location.country if context and context.location else None
        return {"query": shared.get("query", ""), "country": country}

    async def exec_async(self, prep: Dict[str, Any]) -> EmergencyCheckResult:
        number = code = None
        if prep["country"] and self.location_info is not None:
            # pure table lookup, no I/O
            code = self.location_info.resolve_code(prep["country"])
            number = self.location_info.get_emergency_number(prep["country"])
        return self.detector.check(prep["query"], emergency_number=number, country_code=code)

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: EmergencyCheckResult) -> str:
        shared["emergency"] = exec_res
        shared.setdefault("stages", []).append("emergency_check")
        if exec_res.is_emergency:
            return outcomes.EMERGENCY
        return outcomes.CONTINUE
