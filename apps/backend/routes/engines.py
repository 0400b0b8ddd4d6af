"""Engine registry endpoints."""

from fastapi import APIRouter, Depends

from dependencies import get_coordinator
from aggregator.coordinator import SearchCoordinator

router = APIRouter(tags=["engines"])


@router.get("/engines")
async def list_engines(coordinator: SearchCoordinator = Depends(get_coordinator)):
    engines = coordinator.list_engines()
    return {
        "engines": [engine.model_dump(mode="json") for engine in engines],
        "count": len(engines),
        "enabled": sum(1 for engine in engines if engine.enabled),
    }


@router.get("/engines/{name}")
async def get_engine(name: str, coordinator: SearchCoordinator = Depends(get_coordinator)):
    # Unknown names raise ResourceNotFoundError, rendered as 404 by the app handler.
    return coordinator.get_engine(name).model_dump(mode="json")
