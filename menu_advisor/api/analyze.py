"""
analyze.py (API Route)

This file defines the menu analysis endpoint.

What this file does:
- Accepts a menu photo as multipart/form-data
- Rate-limits callers by IP
- Validates the upload (type, size, magic bytes)
- Runs OCR, then LLM extraction
- Returns sanitized menu items as JSON

What this file does NOT do:
- Save files to disk (everything stays in memory)
- Process images directly (delegates to OCRService)
- Talk to the LLM directly (delegates to MenuExtractorService)

Flow:
Upload → checks → OCRService → MenuExtractorService → sanitized items → JSON
"""

import asyncio
import json
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from menu_advisor.api.dependencies import (
    get_client_ip,
    get_menu_extractor,
    get_ocr_service,
    get_rate_limiter,
)
from menu_advisor.api.middleware import error_json_response, get_request_id
from menu_advisor.config import (
    DEFAULT_TIME_OF_DAY,
    DEFAULT_USER_GOAL,
    IS_PRODUCTION,
    MAX_FILE_SIZE,
    MAX_FOOD_ITEMS,
    MIN_TEXT_LENGTH,
    OCR_TIMEOUT_SECONDS,
)
from menu_advisor.exceptions import (
    ConfigurationError,
    FileTooLargeError,
    InternalServerError,
    InvalidFileContentError,
    InvalidFileTypeError,
    MenuAnalysisError,
    MissingImageError,
    NoTextFoundError,
    OCRFailedError,
    RateLimitExceededError,
)
from menu_advisor.schemas.analyze import AnalyzeResponse, ErrorResponse
from menu_advisor.services.extractor import MenuExtractorService
from menu_advisor.services.ocr import OCRService
from menu_advisor.services.rate_limiter import RateLimiter
from menu_advisor.services.validation import (
    ALLOWED_MIME_TYPES,
    is_allowed_mime_type,
    validate_magic_bytes,
)

logger = logging.getLogger(__name__)

# Create a router for the analysis endpoint
# This router will be registered in main.py
router = APIRouter()

NO_ITEMS_MESSAGE = "No menu items could be identified. Try a clearer image."
GENERIC_ERROR_MESSAGE = "An error occurred while processing your request."

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing, invalid or unreadable image"},
    405: {"model": ErrorResponse, "description": "Method not allowed"},
    429: {"model": ErrorResponse, "description": "Too many requests"},
    500: {"model": ErrorResponse, "description": "OCR failure or internal error"},
    503: {"model": ErrorResponse, "description": "Service not configured"},
}


def _format_size(size: int) -> str:
    megabyte = 1024 * 1024
    if size >= megabyte and size % megabyte == 0:
        return f"{size // megabyte}MB"
    if size >= 1024:
        return f"{size / 1024:.0f}KB"
    return f"{size} bytes"


def _form_text(value: Any) -> str:
    """Return a text form field, or "" for missing fields and files."""
    if isinstance(value, str):
        return value.strip()
    return ""


def parse_user_food_data(raw: Any) -> List[str]:
    """
    Parse the userFoodData form field.

    Accepts a JSON array of strings ('["oatmeal", "coffee"]') or plain text.
    Text that is not JSON becomes a single-element list. Valid JSON that is
    not an array is ignored. Non-string array entries are dropped.

    Examples:
    '["oatmeal", "coffee"]' -> ["oatmeal", "coffee"]
    'two eggs'              -> ["two eggs"]
    '["rice", 3]'           -> ["rice"]
    '42'                    -> []
    ''                      -> []
    """

    text = _form_text(raw)
    if not text:
        return []

    try:
        parsed = json.loads(text)
    except ValueError:
        return [text]

    if not isinstance(parsed, list):
        return []

    foods = [item for item in parsed if isinstance(item, str) and item.strip()]
    return foods[:MAX_FOOD_ITEMS]


@router.post(
    "",  # Endpoint URL will be /api/analyze
    response_model=AnalyzeResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Analyze a menu photo",
    description=(
        "Upload a menu photo (JPEG, PNG, WebP or GIF) as the 'image' form field. "
        "Optional fields: userGoal, timeOfDay, userFoodData (JSON array of foods "
        "already eaten). Returns menu items with price, estimated nutrition and a "
        "goal-relative category."
    ),
    responses=_ERROR_RESPONSES
)
async def analyze_menu(
    request: Request,
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    ocr_service: OCRService = Depends(get_ocr_service),
    extractor: Optional[MenuExtractorService] = Depends(get_menu_extractor),
):
    """
    Menu analysis endpoint.

    Step-by-step process (stops at the first failing step):
    1. Check the LLM credential is configured        → 503 CONFIG_ERROR
    2. Rate-limit by client IP                         → 429 RATE_LIMITED
    3. Require an 'image' file field                   → 400 MISSING_IMAGE
    4. Check the declared MIME type                    → 400 INVALID_FILE_TYPE
    5. Check the file size                             → 400 FILE_TOO_LARGE
    6. Check magic bytes against the declared type     → 400 INVALID_FILE_CONTENT
    7. Read optional user context fields
    8. OCR the image                                   → 500 OCR_FAILED / 400 NO_TEXT_FOUND
    9. Extract and sanitize menu items (never fails)
    10. Return the items

    Any other exception becomes 500 INTERNAL_ERROR.
    """

    request_id = get_request_id(request)
    form = None

    try:
        # Step 1: The LLM key is required for every request
        if extractor is None:
            raise ConfigurationError()

        # Step 2: Rate limit by client IP
        client_ip = get_client_ip(request)
        if not rate_limiter.check(client_ip):
            raise RateLimitExceededError(
                details={
                    "limit": rate_limiter.max_requests,
                    "windowSeconds": rate_limiter.window_seconds
                }
            )

        # Step 3: Parse multipart form and find the image
        try:
            form = await request.form()
        except Exception as error:
            logger.warning(f"[{request_id}] Could not parse form data: {error}")
            raise MissingImageError(
                "Could not read the upload. Send multipart/form-data with an 'image' file."
            ) from error

        upload = form.get("image")
        if not isinstance(upload, UploadFile):
            raise MissingImageError()

        # Step 4: Declared type must be an accepted image type
        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        if not is_allowed_mime_type(content_type):
            raise InvalidFileTypeError(
                details={"contentType": content_type, "allowedTypes": list(ALLOWED_MIME_TYPES)}
            )

        # Step 5: Size limit (read one byte past the limit to detect overflow)
        size_message = f"File too large. Maximum size is {_format_size(MAX_FILE_SIZE)}."
        if upload.size is not None and upload.size > MAX_FILE_SIZE:
            raise FileTooLargeError(size_message, details={"maxBytes": MAX_FILE_SIZE})

        image_bytes = await upload.read(MAX_FILE_SIZE + 1)
        if len(image_bytes) > MAX_FILE_SIZE:
            raise FileTooLargeError(size_message, details={"maxBytes": MAX_FILE_SIZE})

        # Step 6: Content must match the declared type
        if not validate_magic_bytes(image_bytes, content_type):
            raise InvalidFileContentError()

        # Step 7: Optional user context
        user_goal = _form_text(form.get("userGoal")) or DEFAULT_USER_GOAL
        time_of_day = _form_text(form.get("timeOfDay")) or DEFAULT_TIME_OF_DAY
        user_food_data = parse_user_food_data(form.get("userFoodData"))

        logger.info(f"[{request_id}] Processing image: {upload.filename} ({len(image_bytes)} bytes)")

        # Step 8: OCR runs in a worker thread, bounded by a timeout.
        # An executor future stops waiting on cancel; the thread finishes on its own.
        loop = asyncio.get_running_loop()
        try:
            raw_text = await asyncio.wait_for(
                loop.run_in_executor(None, ocr_service.extract_text, image_bytes),
                timeout=OCR_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError as error:
            raise OCRFailedError(details={"reason": "timeout"}) from error
        except Exception as error:
            logger.error(f"[{request_id}] OCR error: {error}")
            raise OCRFailedError() from error

        if not raw_text or len(raw_text.strip()) < MIN_TEXT_LENGTH:
            raise NoTextFoundError(
                details={"charactersFound": len((raw_text or "").strip())}
            )

        # Step 9: Best-effort extraction, returns [] on any failure
        menu_items = await run_in_threadpool(
            extractor.extract_menu_items,
            raw_text=raw_text,
            user_goal=user_goal,
            time_of_day=time_of_day,
            user_food_data=user_food_data
        )

        # Step 10: Respond
        if not menu_items:
            return AnalyzeResponse(items=[], message=NO_ITEMS_MESSAGE, request_id=request_id)

        logger.info(f"[{request_id}] Returning {len(menu_items)} menu items")
        return AnalyzeResponse(items=menu_items, request_id=request_id)

    except MenuAnalysisError:
        raise

    except Exception as error:
        # Catch any unexpected errors
        logger.exception(f"[{request_id}] Error analyzing menu: {error}")
        message = GENERIC_ERROR_MESSAGE if IS_PRODUCTION else (str(error) or "Unknown error")
        raise InternalServerError(message) from error

    finally:
        if form is not None:
            await form.close()


@router.get(
    "",
    status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
    summary="Not supported",
    description="Analysis only accepts POST with multipart/form-data.",
    responses={405: {"model": ErrorResponse}}
)
async def analyze_method_not_allowed(request: Request):
    response = error_json_response(
        request,
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        code="METHOD_NOT_ALLOWED",
        message="Method not allowed. Use POST with multipart/form-data."
    )
    response.headers["Allow"] = "POST"
    return response
