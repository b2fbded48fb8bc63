"""Playlist, library and stream control routes."""

import logging
from typing import List, Literal

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from control_api.auth import require_api_key
from control_api.controller import RadioController
from shared.modes import PlaybackMode

logger = logging.getLogger(__name__)

router = APIRouter()


class AddItemRequest(BaseModel):
    """New playlist item."""

    title: str = Field(..., min_length=1, description="Display title")
    source_uri: str = Field(..., min_length=1, description="Remote URI or local path")
    duration_seconds: float = Field(0, ge=0, description="Track length in seconds")
    kind: Literal["song", "jingle", "advertisement"] = Field("song", description="Item kind")


class ReorderItem(BaseModel):
    """New position for one playlist item."""

    id: str = Field(..., description="Playlist item id")
    order: int = Field(..., description="New position")


class ReorderRequest(BaseModel):
    """Bulk reorder request."""

    items: List[ReorderItem] = Field(..., min_length=1)


def get_controller(request: Request) -> RadioController:
    return request.app.state.controller


async def _regenerate_if_remote_driven(controller: RadioController):
    # Only the remote-driven manifest is built from the store
    if controller.mode != PlaybackMode.REMOTE_DRIVEN:
        return None
    return await controller.regenerate()


@router.get("/playlist")
async def get_playlist(controller: RadioController = Depends(get_controller)):
    """Active playlist items in play order.

    Returns:
        list: Playlist items.
    """
    return [entry.to_dict() for entry in controller.store.list_active()]


@router.post("/item", dependencies=[Depends(require_api_key)])
async def add_item(
    payload: AddItemRequest,
    controller: RadioController = Depends(get_controller),
):
    """Append an item to the playlist.

    In remote-driven mode the manifest is regenerated and the stream restarted.

    Args:
        payload: Item fields.
        controller: Radio controller.

    Returns:
        dict: Stored item and the regenerate summary, if any.
    """
    entry = controller.store.add_item(
        payload.title,
        payload.source_uri,
        payload.duration_seconds,
        payload.kind,
    )
    regenerated = await _regenerate_if_remote_driven(controller)

    return {"message": "Item added", "item": entry.to_dict(), "regenerated": regenerated}


@router.post("/reorder", dependencies=[Depends(require_api_key)])
async def reorder_items(
    payload: ReorderRequest,
    controller: RadioController = Depends(get_controller),
):
    """Assign new positions to playlist items.

    Returns:
        dict: Number of updated items and the regenerate summary, if any.
    """
    updated = controller.store.reorder([item.model_dump() for item in payload.items])
    regenerated = await _regenerate_if_remote_driven(controller)

    return {"success": True, "updated": updated, "regenerated": regenerated}


@router.post("/item/{item_id}/deactivate", dependencies=[Depends(require_api_key)])
async def deactivate_item(
    item_id: str,
    controller: RadioController = Depends(get_controller),
):
    """Take an item out of rotation without deleting it.

    Returns:
        dict: The deactivated item and the regenerate summary, if any.
    """
    if not controller.store.deactivate(item_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Playlist item not found: {item_id}",
        )
    regenerated = await _regenerate_if_remote_driven(controller)

    return {
        "success": True,
        "item": controller.store.get_item(item_id).to_dict(),
        "regenerated": regenerated,
    }


@router.post("/library/sync", dependencies=[Depends(require_api_key)])
async def sync_library(controller: RadioController = Depends(get_controller)):
    """Synchronize the local cache with the remote manifest."""
    result = await controller.sync_library()
    return result.to_dict()


@router.post("/playlist/regenerate", dependencies=[Depends(require_api_key)])
async def regenerate_playlist(controller: RadioController = Depends(get_controller)):
    """Rebuild the manifest and restart the stream."""
    return await controller.regenerate()


@router.post("/library/refresh", dependencies=[Depends(require_api_key)])
async def refresh_library(controller: RadioController = Depends(get_controller)):
    """Synchronize, rebuild the manifest and restart the stream."""
    return await controller.sync_and_regenerate()


@router.post("/stream/start", dependencies=[Depends(require_api_key)])
async def start_stream(controller: RadioController = Depends(get_controller)):
    """Start the encoder on the current manifest.

    Returns:
        dict: Encoder status after the start.
    """
    logger.info("Stream start requested")
    return await controller.start_stream()


@router.post("/stream/stop", dependencies=[Depends(require_api_key)])
async def stop_stream(controller: RadioController = Depends(get_controller)):
    """Stop the encoder.

    Returns:
        dict: Encoder status after the stop.
    """
    logger.info("Stream stop requested")
    return await controller.stop_stream()


@router.get("/stream/status")
async def get_stream_status(controller: RadioController = Depends(get_controller)):
    """Controller and encoder status."""
    return controller.get_status()
