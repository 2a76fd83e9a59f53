"""Signing action endpoints.

One POST route per entry in the action table. The request body is ignored:
the action payload and the target wallet both come from the signed token.
"""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import APIRouter, Depends

from ..authn import AuthenticatedRequest, require_authenticated_request
from ..dispatcher import ACTION_TABLE, ActionKind, ActionSpec, CommandDispatcher

router = APIRouter(tags=["actions"])


@dataclass
class ActionDependencies:
    dispatcher: CommandDispatcher


def get_deps() -> ActionDependencies:
    raise NotImplementedError("Dependency override required")


def _make_endpoint(kind: ActionKind):
    async def endpoint(
        auth: AuthenticatedRequest = Depends(require_authenticated_request),
        deps: ActionDependencies = Depends(get_deps),
    ):
        result = await deps.dispatcher.dispatch(kind, auth)
        return result.model_dump(by_alias=True)

    endpoint.__name__ = kind.value
    return endpoint


def _register(spec: ActionSpec) -> None:
    router.add_api_route(
        spec.path,
        _make_endpoint(spec.kind),
        methods=["POST"],
        name=spec.kind.value,
        summary=spec.summary,
    )


for _spec in ACTION_TABLE.values():
    _register(_spec)
