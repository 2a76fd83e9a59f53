"""
Broadcast of signed transactions and aggregation of commit results.

The aggregator submits one signed transaction through a NetworkClient and
folds the returned per-transaction commit records into a BatchResponse:
- order mirrors the records returned by the network
- ``ok == False`` entries are kept; partial failure is data, not an error
- no local retries; transport failures surface as SubmissionError
"""
from __future__ import annotations

import logging
import time
from typing import Any, List, Optional, Protocol, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_pascal

from dexvault_core.exceptions import SubmissionError

from .builders import CHAIN_NETWORKS
from .credentials import SigningCredential

logger = logging.getLogger(__name__)

BROADCAST_PATH = "/api/v1/broadcast"


class CommitResult(BaseModel):
    """One network acknowledgment for a submitted transaction."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    ok: bool
    hash: str = ""
    data: str = ""


class BatchResponse(BaseModel):
    """Ordered aggregate of the commit results of one submission."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    results: List[CommitResult] = Field(default_factory=list)


class _CommitRecord(BaseModel):
    """Commit record as returned by the broadcast endpoint."""

    model_config = ConfigDict(extra="ignore")

    ok: bool
    hash: str = ""
    data: Optional[str] = None
    log: Optional[str] = None
    code: Optional[int] = None


class NetworkClient(Protocol):
    async def post_transaction(
        self,
        endpoint: str,
        network_id: int,
        signed_tx: str,
    ) -> Sequence[CommitResult]:
        ...


class HttpNetworkClient:
    """
    Network client posting signed transactions to a node's broadcast API.

    The request is synchronous on the node side (``sync=true``): the node
    answers once the transaction passed its check phase. Timeouts and TLS are
    left to httpx.
    """

    def __init__(
        self,
        scheme: str = "https",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._scheme = scheme
        self._timeout = timeout_seconds
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                transport=self._transport,
            )
        return self._http_client

    def _url(self, endpoint: str) -> str:
        endpoint = endpoint.strip().rstrip("/")
        if "://" not in endpoint:
            endpoint = f"{self._scheme}://{endpoint}"
        return f"{endpoint}{BROADCAST_PATH}"

    async def post_transaction(
        self,
        endpoint: str,
        network_id: int,
        signed_tx: str,
    ) -> List[CommitResult]:
        if network_id not in CHAIN_NETWORKS:
            raise SubmissionError(f"Unknown network {network_id}", endpoint=endpoint)

        url = self._url(endpoint)
        client = await self._get_client()
        try:
            response = await client.post(
                url,
                params={"sync": "true"},
                content=signed_tx.encode("ascii"),
                headers={"Content-Type": "text/plain"},
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise SubmissionError(
                f"Broadcast rejected with HTTP {e.response.status_code}",
                endpoint=endpoint,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise SubmissionError(f"Broadcast failed: {e}", endpoint=endpoint) from e
        except ValueError as e:
            raise SubmissionError("Broadcast response is not valid JSON", endpoint=endpoint) from e

        return self._parse_commits(body, endpoint)

    @staticmethod
    def _parse_commits(body: Any, endpoint: str) -> List[CommitResult]:
        if not isinstance(body, list):
            raise SubmissionError("Broadcast response is not a list of commits", endpoint=endpoint)
        try:
            records = [_CommitRecord.model_validate(item) for item in body]
        except ValidationError as e:
            raise SubmissionError("Broadcast response has malformed commits", endpoint=endpoint) from e
        return [
            CommitResult(ok=r.ok, hash=r.hash, data=r.data if r.data is not None else (r.log or ""))
            for r in records
        ]

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


class BroadcastAggregator:
    """Submits a signed transaction and aggregates the acknowledgments."""

    def __init__(self, client: NetworkClient) -> None:
        self._client = client

    async def submit(
        self,
        credential: SigningCredential,
        endpoint: str,
        network_id: int,
        signed_tx: str,
    ) -> BatchResponse:
        start = time.perf_counter()
        try:
            commits = await self._client.post_transaction(endpoint, network_id, signed_tx)
        except SubmissionError:
            raise
        except Exception as e:
            raise SubmissionError(f"Broadcast failed: {e}", endpoint=endpoint) from e

        response = BatchResponse(
            results=[CommitResult(ok=c.ok, hash=c.hash, data=c.data) for c in commits]
        )
        logger.info(
            "Broadcast completed",
            extra={
                "endpoint": endpoint,
                "network": network_id,
                "signer": credential.address,
                "commits": len(response.results),
                "failed_commits": sum(1 for r in response.results if not r.ok),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return response
