from datetime import datetime, timezone
import logging
from typing import Any, Dict, List

from fastapi import Request, UploadFile
from fastapi.responses import JSONResponse

from dal.caption_dal import CaptionDAL
from models.caption_record import CaptionLogEntry
from services.openai.frame_captioner import FrameCaptioner
from utils.media_validation import normalize_mime_type, read_image_bytes

ANALYSIS_DISABLED_CAPTION = "Frame analysis is disabled"

logger = logging.getLogger(__name__)


async def analyze_frame(request: Request, file: UploadFile | None) -> Any:
    """Caption one uploaded frame and append it to the caption log.

    Args:
        request: FastAPI Request (used to access app.state for shared clients).
        file: Uploaded frame (multipart field `file`).

    Returns:
        `{"caption": ...}` on success or when analysis is disabled, or a 500
        JSONResponse with `error` and `details` when captioning fails.
    """
    toggles = request.app.state.toggles
    if not toggles.frame_analysis_enabled:
        return {"caption": ANALYSIS_DISABLED_CAPTION}

    image_bytes = await read_image_bytes(file)
    mime_type = normalize_mime_type(file.content_type)
    logger.info("Analyzing frame: %d bytes, %s", len(image_bytes), mime_type)

    captioner = FrameCaptioner(request.app.state.openai_client, model=request.app.state.settings.caption_model)
    try:
        result = await captioner.caption(image_bytes, mime_type)
    except Exception as exc:
        logger.error("Frame analysis error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to analyze frame", "details": str(exc)},
        )

    entry = CaptionLogEntry(
        id=None,
        timestamp=datetime.now(timezone.utc).isoformat(),
        caption=result["caption"],
        image_size=len(image_bytes),
        mime_type=mime_type,
    )
    await CaptionDAL(request.app.state.db_initializer).append(entry)
    return {"caption": entry.caption}


async def list_captions(request: Request, limit: int) -> List[Dict[str, Any]]:
    """Return the most recent caption log entries, most recent first."""
    entries = await CaptionDAL(request.app.state.db_initializer).list_recent(limit)
    return [entry.to_dict() for entry in entries]
