"""
FastAPI dependency injection utilities.
Handles context generation, upload validation, and request processing.
"""
import uuid
from typing import Annotated
from fastapi import Form, UploadFile, HTTPException, status
from qualicert_config import settings
from api.schemas import BusinessContext, parse_context_from_form


async def read_xml_upload(file: UploadFile) -> str:
    """
    Validate an uploaded NF-e XML file and return its text.

    Raises:
        HTTPException: 415 wrong content type, 413 too large, 422 not UTF-8
    """
    if file.content_type not in settings.ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Invalid content type. Expected: {settings.ALLOWED_CONTENT_TYPES}"
        )

    content = await file.read()

    # The parser has no size limit of its own
    if len(content) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Max size: {settings.API_MAX_UPLOAD_SIZE_MB}MB"
        )

    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="XML file must be UTF-8 encoded"
        )


async def parse_business_context(context: Annotated[str, Form()]) -> BusinessContext:
    """
    Parse and validate business context from form data.
    Generates trace_id / execution_id when the caller did not send them.

    Raises:
        HTTPException: If parsing or validation fails
    """
    try:
        business_context = parse_context_from_form(context)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )

    if not business_context.trace_id:
        business_context.trace_id = str(uuid.uuid4())

    if not business_context.execution_id:
        business_context.execution_id = f"{business_context.tenant_id}_{uuid.uuid4().hex[:12]}"

    return business_context
