"""
REST endpoints for the live session: loading, start/stop, results, snapshots.
"""
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
import logging

from core.config import Settings
from core.controller import CaptureController
from core.models import ControllerState
from core.visual import encode_image

router = APIRouter()
settings = Settings()
logger = logging.getLogger(__name__)

controller: CaptureController | None = None


def get_controller() -> CaptureController:
    global controller
    if controller is None:
        controller = CaptureController(settings)
    return controller


@router.get("/status")
async def status():
    """
    Full view state: controller state, status message, model badges, results.
    """
    return get_controller().presenter.view().model_dump(mode="json")


@router.post("/models/load")
async def models_load():
    """
    Start loading the library and models in the background.

    Returns:
        dict: Current state and per-model readiness.
    """
    ctl = get_controller()
    if ctl.state in (ControllerState.IDLE, ControllerState.FAILED):
        logger.debug("[api] /models/load starting background load")
        ctl.load_async()
    return {"state": ctl.state.value, "models": ctl.models.model_dump()}


@router.post("/live/start")
def live_start():
    ctl = get_controller()
    if ctl.detecting:
        return {"status": "already_running"}
    if ctl.state != ControllerState.READY:
        raise HTTPException(status_code=409, detail=f"Models not ready (state={ctl.state.value})")
    if not ctl.start():
        # Camera failure: the presenter carries the actionable message
        raise HTTPException(status_code=503, detail=ctl.presenter.view().status.message)
    return {"status": "started"}

@router.get("/live/status")
async def live_status():
    ctl = get_controller()
    view = ctl.presenter.view()
    return {
        "running": ctl.detecting,
        "state": ctl.state.value,
        "start_label": view.start_label,
        "status": view.status.model_dump(),
        "models": view.models.model_dump(),
    }

@router.get("/live/results")
async def live_results():
    return get_controller().presenter.view().results.model_dump(mode="json")

@router.post("/live/stop")
def live_stop():
    if not get_controller().stop():
        return {"status": "not_running"}
    return {"status": "stopped"}

@router.post("/live/snapshot")
async def live_snapshot():
    """
    Compose the current frame and overlay into a downloadable PNG.
    """
    ctl = get_controller()
    try:
        shot = ctl.snapshot()
    except Exception as e:
        logger.exception("[api] snapshot failed")
        raise HTTPException(status_code=500, detail=f"Snapshot failed: {e}")
    if shot is None:
        raise HTTPException(status_code=409, detail="Detection is not running")
    name, png = shot
    return Response(content=png, media_type="image/png",
                    headers={"Content-Disposition": f'attachment; filename="{name}"'})

@router.get("/live/frame")
async def live_frame():
    """
    Latest annotated preview as JPEG (idle screen when not detecting).
    """
    try:
        jpg = encode_image(get_controller().preview(), ".jpg")
    except Exception as e:
        logger.exception("[api] frame encode failed")
        raise HTTPException(status_code=500, detail=str(e))
    return Response(content=jpg, media_type="image/jpeg")
