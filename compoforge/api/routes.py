"""Composition API endpoints.

Every route works on the EditorState stored in ``request.app.state.editor``.
Layer ids are the UUIDs assigned at creation.
"""

import time
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from compoforge.editor import EditorState
from compoforge.imaging.codec import mime_type
from compoforge.layers import BlendMode, ColorCorrection
from compoforge.viewport import Viewport


router = APIRouter(tags=["composition"])


def _editor(request: Request) -> EditorState:
    return request.app.state.editor


# --- Request Models ---


class PromptRequest(BaseModel):
    """Request body for generation and edit calls."""

    prompt: str


class LayerUpdateRequest(BaseModel):
    """Request body for updating a layer. Only fields that are sent change."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    rotation: Optional[float] = None
    scale: Optional[float] = None
    opacity: Optional[float] = None
    blend_mode: Optional[BlendMode] = Field(default=None, alias='blendMode')
    is_visible: Optional[bool] = Field(default=None, alias='isVisible')
    is_locked: Optional[bool] = Field(default=None, alias='isLocked')
    z_index: Optional[int] = Field(default=None, alias='zIndex')
    color_correction: Optional[ColorCorrection] = Field(default=None, alias='colorCorrection')


# --- Endpoints ---


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": "0.1.0"}


@router.get("/layers")
async def list_layers(request: Request):
    """List layers in draw order (without image content)."""
    editor = _editor(request)
    return {
        "layers": [layer.to_api_dict(include_content=False) for layer in editor.store.layers],
        "selectedId": editor.store.selected_id,
    }


@router.post("/layers", status_code=201)
async def add_layer(request: Request, name: str = "Image Layer"):
    """Add a layer from a raw image request body."""
    data = await request.body()
    layer = _editor(request).add_image(data, name)
    return layer.to_api_dict(include_content=False)


@router.get("/layers/{layer_id}")
async def get_layer(request: Request, layer_id: str, include_content: bool = False):
    """Get a single layer."""
    layer = _editor(request).store.require(layer_id)
    return layer.to_api_dict(include_content=include_content)


@router.get("/layers/{layer_id}/image")
async def get_layer_image(request: Request, layer_id: str):
    """Get the layer's currently displayed image bytes."""
    layer = _editor(request).store.require(layer_id)
    return Response(content=layer.src, media_type=mime_type(layer.src))


@router.patch("/layers/{layer_id}")
async def update_layer(request: Request, layer_id: str, body: LayerUpdateRequest):
    """Update layer properties."""
    editor = _editor(request)
    editor.store.require(layer_id)
    changes = body.model_dump(exclude_unset=True)
    try:
        layer = editor.store.update(layer_id, **changes)
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return layer.to_api_dict(include_content=False)


@router.delete("/layers/{layer_id}")
async def delete_layer(request: Request, layer_id: str):
    """Delete a layer."""
    if not _editor(request).delete_layer(layer_id):
        raise HTTPException(status_code=404, detail=f"Layer '{layer_id}' not found")
    return {"success": True}


@router.post("/layers/{layer_id}/move/{direction}")
async def move_layer(request: Request, layer_id: str, direction: Literal["up", "down"]):
    """Swap a layer with its neighbor in draw order."""
    moved = _editor(request).store.move_z(layer_id, direction)
    return {"success": True, "moved": moved}


@router.post("/layers/{layer_id}/select")
async def select_layer(request: Request, layer_id: str):
    """Select a layer."""
    _editor(request).store.select(layer_id)
    return {"selectedId": layer_id}


@router.post("/selection/clear")
async def clear_selection(request: Request):
    """Clear the selection."""
    _editor(request).store.select(None)
    return {"selectedId": None}


@router.post("/layers/{layer_id}/background")
async def toggle_background(request: Request, layer_id: str):
    """Remove the layer's background, or restore it if already removed."""
    layer = await _editor(request).toggle_background(layer_id)
    if layer is None:
        raise HTTPException(status_code=404, detail=f"Layer '{layer_id}' was deleted")
    return layer.to_api_dict(include_content=False)


@router.post("/layers/{layer_id}/edit", status_code=201)
async def edit_layer(request: Request, layer_id: str, body: PromptRequest):
    """Remix a layer with a prompt; the result is added as a new layer."""
    try:
        layer = await _editor(request).edit_layer(layer_id, body.prompt)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return layer.to_api_dict(include_content=False)


@router.post("/generate", status_code=201)
async def generate_layer(request: Request, body: PromptRequest):
    """Generate a new layer from a prompt."""
    try:
        layer = await _editor(request).generate_layer(body.prompt)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return layer.to_api_dict(include_content=False)


@router.get("/view")
async def get_view(request: Request):
    """Screen-space placement of the visible layers."""
    editor = _editor(request)
    return {
        "viewport": editor.viewport.model_dump(by_alias=True),
        "layers": [rendered.to_dict() for rendered in editor.view()],
    }


@router.put("/viewport")
async def set_viewport(request: Request, body: Viewport):
    """Replace the viewport."""
    editor = _editor(request)
    editor.viewport = body
    return editor.viewport.model_dump(by_alias=True)


@router.get("/export")
async def export_image(request: Request):
    """Flatten all visible layers to a PNG download."""
    data = _editor(request).export()
    filename = f"composition-{int(time.time() * 1000)}.png"
    return Response(
        content=data,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
