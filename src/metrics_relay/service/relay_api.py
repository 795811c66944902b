"""FastAPI service exposing relay configuration and listener diagnostics."""

from __future__ import annotations

import copy
import os
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, Header, HTTPException, status
from pydantic import BaseModel, Field

from metrics_relay.config.defaults import RelayConfig
from metrics_relay.config.runtime_store import (
    CONFIG_PATH,
    load_relay_config,
    relay_config_from_dict,
    relay_config_to_dict,
    save_relay_config,
)
from metrics_relay.runtime.listener import BackendListener
from metrics_relay.runtime.records import SampleResult

app = FastAPI(title="Metrics Relay Service", version="0.1.0")

API_TOKEN = os.environ.get("METRICS_RELAY_API_TOKEN")
_CONFIG_CACHE: RelayConfig = load_relay_config()
_LISTENER: Optional[BackendListener] = None


async def verify_token(x_api_token: Optional[str] = Header(default=None)) -> None:
    """Simple header token check; bypassed when unset."""
    if API_TOKEN and x_api_token != API_TOKEN:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api token")


def attach_listener(listener: Optional[BackendListener]) -> None:
    """Expose a running listener through the diagnostics endpoints."""
    global _LISTENER  # noqa: PLW0603 - module level handle
    _LISTENER = listener


def _get_config() -> RelayConfig:
    return _CONFIG_CACHE


def _set_config(config: RelayConfig) -> None:
    global _CONFIG_CACHE  # noqa: PLW0603 - module level cache
    _CONFIG_CACHE = config
    save_relay_config(config, CONFIG_PATH)


def _require_listener() -> BackendListener:
    if _LISTENER is None or not _LISTENER.running:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="no running listener")
    return _LISTENER


class SamplePayload(BaseModel):
    label: str
    success: bool
    elapsed_ms: float = Field(ge=0)
    hits: int = Field(default=1, ge=0)


class SampleBatch(BaseModel):
    samples: List[SamplePayload]


@app.get("/health", dependencies=[Depends(verify_token)])
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/config", dependencies=[Depends(verify_token)])
async def get_config() -> Dict[str, Any]:
    """Return the complete relay configuration."""
    return relay_config_to_dict(_get_config())


@app.put("/config", dependencies=[Depends(verify_token)])
async def replace_config(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Replace the entire relay configuration; applies to the next test run."""
    try:
        new_config = relay_config_from_dict(payload, RelayConfig())
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    _set_config(new_config)
    return relay_config_to_dict(new_config)


@app.patch("/config/{section}", dependencies=[Depends(verify_token)])
async def patch_section(section: str, payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Patch one configuration section (listener, scheduler)."""
    config_dict = relay_config_to_dict(_get_config())
    if section not in config_dict:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="unknown section")
    updated = copy.deepcopy(config_dict)
    updated[section].update(payload)
    try:
        new_config = relay_config_from_dict(updated, RelayConfig())
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    _set_config(new_config)
    return relay_config_to_dict(new_config)[section]


@app.get("/listener", dependencies=[Depends(verify_token)])
def listener_status() -> Dict[str, Any]:
    """Return pending samples and current-window counters of the attached listener."""
    if _LISTENER is None:
        return {"running": False, "pending": 0, "aggregates": {}}
    return _LISTENER.status()


@app.post("/listener/samples", dependencies=[Depends(verify_token)])
def post_samples(batch: SampleBatch) -> Dict[str, Any]:
    """Feed a batch of samples to the attached listener."""
    listener = _require_listener()
    results = [
        SampleResult(
            label=sample.label,
            success=sample.success,
            elapsed_ms=sample.elapsed_ms,
            hits=sample.hits,
        )
        for sample in batch.samples
    ]
    try:
        forced = listener.handle_sample_results(results)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return {"accepted": len(results), "forced_flushes": forced}
