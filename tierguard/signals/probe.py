from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import List, Optional, Union
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from tierguard.catalog.models import CatalogSnapshot, InstanceRegistration
from tierguard.compliance.models import PLACEHOLDER_VERSION, Observation
from tierguard.compliance.tiers import normalize_tier

logger = logging.getLogger(__name__)

UNKNOWN_SERVICE = "unknown-service"


class ProbeError(Exception):
    """An instance could not be read as online."""


class ProbeParseError(ProbeError, ValueError):
    """The instance answered but its body is not a usable version payload."""


class ProbePayload(BaseModel):
    """The fields of an instance's self-report that the engine reads."""
    model_config = ConfigDict(extra="ignore")

    service: Optional[str] = None
    version: Optional[str] = None


def service_from_url(url: str) -> str:
    """First DNS label of the URL host: https://billing.uat.example.com -> billing."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return UNKNOWN_SERVICE
    return host.split(".")[0] or UNKNOWN_SERVICE


def parse_probe_body(body: Union[bytes, str]) -> ProbePayload:
    try:
        data = json.loads(body)
    except (ValueError, RecursionError) as e:
        raise ProbeParseError(f"body is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProbeParseError(f"expected a JSON object, got {type(data).__name__}")
    try:
        return ProbePayload.model_validate(data)
    except ValidationError as e:
        raise ProbeParseError(f"unexpected payload: {e}") from e


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


async def probe_instance(
    client: httpx.AsyncClient,
    instance: InstanceRegistration,
    project_name: str,
) -> Observation:
    """
    GET the instance URL and turn the answer into an Observation.

    Never raises for per-instance faults: transport errors, non-2xx answers
    and unusable bodies all come back as an offline observation carrying the
    placeholder version.
    """
    base = dict(
        project_id=instance.project_id,
        project_name=project_name,
        url=instance.url,
        tier=normalize_tier(instance.environment),
        region=instance.region or "unknown",
        instance_id=instance.id,
    )

    t0 = time.perf_counter()
    try:
        r = await client.get(instance.url)
        latency = _elapsed_ms(t0)
        if not r.is_success:
            raise ProbeError(f"HTTP {r.status_code}")
        payload = parse_probe_body(r.content)
    except (httpx.HTTPError, httpx.InvalidURL, ProbeError) as e:
        logger.warning(f"Probe failed for instance {instance.id} ({instance.url}): {e}")
        return Observation(
            service_name=service_from_url(instance.url),
            version=PLACEHOLDER_VERSION,
            status="offline",
            response_time_ms=_elapsed_ms(t0),
            **base,
        )

    return Observation(
        service_name=payload.service or service_from_url(instance.url),
        version=payload.version or PLACEHOLDER_VERSION,
        status="online",
        response_time_ms=latency,
        **base,
    )


async def collect_observations(
    snapshot: CatalogSnapshot,
    client: Optional[httpx.AsyncClient] = None,
    timeout_s: float = 5.0,
) -> List[Observation]:
    """
    Probe every registered instance concurrently.

    Results come back in catalog order once every probe has settled, so the
    caller merges them from a single place.
    """
    if not snapshot.instances:
        return []

    async def run(c: httpx.AsyncClient) -> List[Observation]:
        return list(
            await asyncio.gather(
                *(probe_instance(c, inst, snapshot.project_name(inst.project_id)) for inst in snapshot.instances)
            )
        )

    if client is not None:
        return await run(client)
    async with httpx.AsyncClient(timeout=timeout_s, follow_redirects=True) as c:
        return await run(c)
