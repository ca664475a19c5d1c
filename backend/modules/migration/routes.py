"""
Migration command endpoints.

POST runs one migration action and wraps its result; GET lists the
available actions.
"""

import logging
from typing import Callable

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_migration_tools_builder
from shared.exceptions import MuWiseError, ValidationError

from .models import MigrateRequest, MigrateResponse, MigrationAction
from .tools import MigrationTools, run_action

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/migrate", response_model=MigrateResponse, response_model_exclude_none=True)
async def migrate(
    request: MigrateRequest,
    build_tools: Callable[[], MigrationTools] = Depends(get_migration_tools_builder),
):
    """
    Run a migration action.

    Returns ``{success, action, result}``; any failure is reported as
    ``{success: false, error}``.
    """
    if not request.action:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Action is required"},
        )

    try:
        result = await run_action(build_tools(), request.action)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"success": False, "error": e.message})
    except MuWiseError as e:
        logger.error("Migration action %s failed: %s", request.action, e.message)
        return JSONResponse(status_code=e.status_code, content={"success": False, "error": e.message})

    return MigrateResponse(success=True, action=request.action, result=result.model_dump())


@router.get("/migrate")
async def list_migration_actions() -> dict:
    return {
        "message": "Migration API",
        "availableActions": [action.value for action in MigrationAction],
    }
