"""Marketplace diagnostics: probes the tables the marketplace depends on."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from playbooq.deps import get_gateway
from playbooq.errors import AppError
from playbooq.gateway import Gateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["diagnostics"])

# (label, table, columns, limit) in probe order
_PROBES = (
    ("Playbooks query failed", "playbooks", ("id", "title", "is_marketplace", "owner_id"), 5),
    ("Profiles query failed", "user_profiles", ("id", "display_name"), 5),
    ("Marketplace columns missing", "playbooks", ("is_marketplace", "price", "total_purchases", "average_rating"), 1),
)


@router.get("/api/test-marketplace", status_code=200, response_model=None)
async def test_marketplace(gateway: Gateway = Depends(get_gateway)) -> dict[str, Any] | JSONResponse:
    """Run each probe in order; the first failure is reported with its label."""
    results: list[list[dict[str, Any]]] = []
    for label, table, columns, limit in _PROBES:
        try:
            results.append(await gateway.select(table, columns=columns, limit=limit))
        except AppError as e:
            logger.error("%s: %s", label, e)
            return JSONResponse(status_code=500, content={"error": label, "details": str(e)})

    playbooks, profiles, marketplace = results
    return {
        "success": True,
        "data": {
            "playbooks": len(playbooks),
            "profiles": len(profiles),
            "marketplaceColumns": len(marketplace) > 0,
            "samplePlaybook": _jsonable(playbooks[0]) if playbooks else None,
            "sampleProfile": _jsonable(profiles[0]) if profiles else None,
        },
    }


def _jsonable(row: dict[str, Any]) -> dict[str, Any]:
    return {k: str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v for k, v in row.items()}
