"""FastAPI routes for frame captioning and the caption log."""

from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile

from controllers.frame_controller import analyze_frame, list_captions

router = APIRouter(prefix="/api", tags=["frames"])


@router.post("/analyze-frame")
async def analyze_frame_route(request: Request, file: UploadFile | None = File(None)):
    """Caption an uploaded webcam frame."""
    try:
        return await analyze_frame(request, file)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/caption-logs")
async def caption_logs_route(request: Request, limit: int = Query(2, ge=1, le=500)):
    """Return the most recent caption log entries."""
    try:
        return await list_captions(request, limit)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
