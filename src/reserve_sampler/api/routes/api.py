"""JSON endpoints for reserve snapshots.

On-chain integers are serialized as strings so clients never see them
rounded through a JSON float.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from reserve_sampler.data.store import SnapshotStore
from reserve_sampler.models import ReserveSnapshot

router = APIRouter()


def _snapshot_to_dict(s: ReserveSnapshot) -> dict[str, Any]:
    return {
        "m_token_address": s.m_token_address,
        "block_number": s.block_number,
        "price": str(s.price),
        "total_borrows": str(s.total_borrows),
        "utilization": str(s.utilization),
        "collateral_factor": str(s.collateral_factor),
        "reserves": str(s.reserves),
        "reserve_factor": str(s.reserve_factor),
        "supply_cap": str(s.supply_cap),
        "borrow_cap": str(s.borrow_cap),
        "liquidation_incentive": str(s.liquidation_incentive),
        "borrow_enabled": s.borrow_enabled,
        "block_timestamp": s.block_timestamp,
    }


def _store(request: Request) -> SnapshotStore:
    return request.app.state.store


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Liveness plus the trigger's position, when one is attached."""
    trigger = request.app.state.trigger
    return JSONResponse(
        content={
            "status": "ok",
            "trigger_running": trigger.is_running if trigger is not None else False,
            "next_block": trigger.next_block if trigger is not None else None,
        }
    )


@router.get("/blocks/latest")
async def latest_block(request: Request) -> JSONResponse:
    """Snapshots of the most recently sampled block."""
    store = _store(request)
    block_number = await store.get_latest_block()
    if block_number is None:
        return JSONResponse(status_code=404, content={"error": "no snapshots yet"})
    snapshots = await store.get_block_snapshots(block_number)
    return JSONResponse(
        content={
            "block_number": block_number,
            "snapshots": [_snapshot_to_dict(s) for s in snapshots],
        }
    )


@router.get("/blocks/{block_number}")
async def block_snapshots(request: Request, block_number: int) -> JSONResponse:
    """All snapshots recorded for one block."""
    snapshots = await _store(request).get_block_snapshots(block_number)
    if not snapshots:
        return JSONResponse(
            status_code=404,
            content={"error": f"no snapshots for block {block_number}"},
        )
    return JSONResponse(
        content={
            "block_number": block_number,
            "snapshots": [_snapshot_to_dict(s) for s in snapshots],
        }
    )


@router.get("/assets/{address}/snapshots")
async def asset_snapshots(
    request: Request,
    address: str,
    limit: int = Query(default=100, ge=1, le=1000),
) -> JSONResponse:
    """Recent snapshots for one asset, newest first."""
    snapshots = await _store(request).get_asset_history(address, limit=limit)
    return JSONResponse(content=[_snapshot_to_dict(s) for s in snapshots])
