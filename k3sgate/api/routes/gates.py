from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from k3sgate import registry
from k3sgate.modules.gate import (
    ConfigError,
    GateSettings,
    ProbeNotFoundError,
    ReadinessGate,
    Reporter,
    TargetFormatError,
    check_once,
    parse_targets,
)

router = APIRouter()


class SettingsOverrides(BaseModel):
    max_attempts: Optional[int] = None
    base_delay: Optional[float] = None
    max_delay: Optional[float] = None
    timeout: Optional[float] = None
    probe_timeout: Optional[float] = None
    grace: Optional[float] = None
    max_workers: Optional[int] = None


class GateRequest(BaseModel):
    targets: List[str] = Field(..., description="Targets as address|label")
    settings: SettingsOverrides = Field(default_factory=SettingsOverrides)


class CheckRequest(BaseModel):
    targets: List[str]
    probe_timeout: Optional[float] = None


def _prepare(probe: str, targets: List[str], **overrides: Any):
    try:
        checker = registry.get_probe(probe)
    except ProbeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    try:
        parsed = parse_targets(targets)
        settings = GateSettings.load(probe).with_overrides(**overrides)
    except (TargetFormatError, ConfigError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return checker, parsed, settings


@router.get("/probes")
def get_probes() -> Dict[str, List[str]]:
    return {"probes": registry.list_probes()}


@router.post("/gates/{probe}")
def run_gate(probe: str, req: GateRequest) -> Dict[str, Any]:
    """Run a readiness gate to completion and return its report."""
    checker, parsed, settings = _prepare(probe, req.targets, **req.settings.model_dump())
    report = ReadinessGate(checker, settings=settings, reporter=Reporter.for_probe(checker)).run(parsed)
    return report.to_dict()


@router.post("/checks/{probe}")
def run_check(probe: str, req: CheckRequest) -> Dict[str, Any]:
    """Probe every target once and return the outcomes."""
    checker, parsed, settings = _prepare(probe, req.targets, probe_timeout=req.probe_timeout)
    result = check_once(checker, parsed, probe_timeout=settings.probe_timeout, grace=settings.grace)
    return {
        "probe": probe,
        "success": result.all_succeeded,
        "outcomes": [o.to_dict() for o in result.outcomes],
    }
