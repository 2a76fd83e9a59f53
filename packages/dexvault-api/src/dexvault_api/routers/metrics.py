"""Prometheus metrics endpoint and recording helpers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from dexvault_core.exceptions import PermissionDeniedError

from ..authn import AuthenticatedRequest, optional_authenticated_request

router = APIRouter(tags=["monitoring"])

# Request metrics
http_requests_total = Counter(
    "dexvault_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "dexvault_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Dispatch metrics
dispatch_total = Counter(
    "dexvault_dispatch_total",
    "Signing action dispatch outcomes",
    ["action", "outcome"],  # outcome: "returned", "broadcast" or "failed"
)

broadcast_duration_seconds = Histogram(
    "dexvault_broadcast_duration_seconds",
    "Latency of transaction broadcast to the remote network",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

broadcast_commits_total = Counter(
    "dexvault_broadcast_commits_total",
    "Commit results returned by the remote network",
    ["ok"],
)


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def record_dispatch(action: str, outcome: str) -> None:
    dispatch_total.labels(action=action, outcome=outcome).inc()


def record_broadcast(duration: float, ok: int, failed: int) -> None:
    broadcast_duration_seconds.observe(duration)
    if ok:
        broadcast_commits_total.labels(ok="true").inc(ok)
    if failed:
        broadcast_commits_total.labels(ok="false").inc(failed)


@dataclass
class MetricsDependencies:
    public: bool = False


def get_deps() -> MetricsDependencies:
    raise NotImplementedError("Dependency override required")


@router.get("/metrics")
async def metrics(
    auth: Optional[AuthenticatedRequest] = Depends(optional_authenticated_request),
    deps: MetricsDependencies = Depends(get_deps),
):
    """Prometheus exposition; requires a verified token unless metrics are public."""
    if not deps.public and auth is None:
        raise PermissionDeniedError("Authentication required")
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
