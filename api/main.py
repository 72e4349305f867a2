"""
FastAPI application entry point.
Exposes the NF-e import pipeline and the certificate validation engine:
- API validates uploads and maps errors to HTTP
- qualicert.core makes all business decisions
- No persistence at API layer (callers store the returned payloads)
"""
import logging
from datetime import date
from typing import Annotated
from fastapi import FastAPI, UploadFile, File, Depends, status
from fastapi.responses import JSONResponse

from qualicert_config import settings
from qualicert.core.characteristics import validate_certificate
from qualicert.core.errors import NFeImportError
from qualicert.core.expiration import classify_expiration, summarize_expirations
from qualicert.core.nfe_parser import parse_nfe_xml_with_warnings, summarize_nfe_xml, validate_nfe_xml
from qualicert.orchestrator import Orchestrator, error_kind
from qualicert.schema.certificate_models import CertificateVerdict
from qualicert.schema.models import InvoiceSummary, ParseOutcome, PrecheckResult
from qualicert.schema.orchestrator_models import PipelineResult
from api.schemas import (
    BusinessContext,
    CertificateValidationRequest,
    ExpirationRequest,
    ExpirationResponse,
    HealthResponse,
    ImportErrorResponse,
    LotRisk,
)
from api.dependencies import read_xml_upload, parse_business_context

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

# Mensagens distintas para "não é XML", "não é NF-e" e "NF-e incompleta"
IMPORT_ERROR_MESSAGES = {
    "parse": "File is not well-formed XML",
    "malformed": "Not a recognized invoice format",
    "missing_field": "Invoice XML is missing required data",
}

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="NF-e XML ingestion and quality-certificate validation",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

orchestrator = Orchestrator()

XmlFile = Annotated[UploadFile, File(description="NF-e XML file")]


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Returns service status and basic diagnostics.
    """
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        checks={"api": True}
    )


@app.post("/v1/nfe/validate", response_model=PrecheckResult, tags=["NF-e"])
async def precheck_nfe(file: XmlFile):
    """Cheap textual pre-check before the full import. Never fails on content."""
    xml_text = await read_xml_upload(file)
    return validate_nfe_xml(xml_text)


@app.post("/v1/nfe/parse", response_model=ParseOutcome, tags=["NF-e"])
async def parse_nfe(file: XmlFile):
    """Full normalization: invoice, emitter, recipient, items and fallback warnings."""
    xml_text = await read_xml_upload(file)
    return parse_nfe_xml_with_warnings(xml_text)


@app.post("/v1/nfe/summary", response_model=InvoiceSummary, tags=["NF-e"])
async def summarize_nfe(file: XmlFile):
    """Preview card data (number, recipient, item count, total)."""
    xml_text = await read_xml_upload(file)
    return summarize_nfe_xml(xml_text)


@app.post("/v1/nfe/import", response_model=PipelineResult, tags=["NF-e"])
async def import_nfe(
    file: XmlFile,
    context: Annotated[BusinessContext, Depends(parse_business_context)]
):
    """
    Run the audited import pipeline (PRECHECK -> PARSE -> VALIDATE).

    **Request Format (multipart/form-data):**
    - `file`: NF-e XML (max 5MB)
    - `context`: JSON string with business context

    **Example:**
    ```bash
    curl -X POST http://localhost:8000/v1/nfe/import \\
      -F "file=@nota.xml;type=application/xml" \\
      -F 'context={"tenant_id":"acme-corp"}'
    ```
    """
    xml_text = await read_xml_upload(file)
    return orchestrator.process(xml_text, context.model_dump())


@app.post("/v1/certificates/validate", response_model=CertificateVerdict, tags=["Certificates"])
async def validate_entry_certificate(request: CertificateValidationRequest):
    """Compare lab-reported results with the product's acceptance criteria."""
    return validate_certificate(request.characteristics, request.results)


@app.post("/v1/lots/expiration", response_model=ExpirationResponse, tags=["Certificates"])
async def lots_expiration(request: ExpirationRequest):
    """Expiration risk per lot plus dashboard counts."""
    as_of = request.as_of or date.today()
    return ExpirationResponse(
        summary=summarize_expirations((lot.expiration_date for lot in request.lots), as_of),
        lots=[
            LotRisk(lot=lot.lot, risk=classify_expiration(lot.expiration_date, as_of))
            for lot in request.lots
        ],
    )


@app.exception_handler(NFeImportError)
async def nfe_import_error_handler(request, exc: NFeImportError):
    """
    Map ingestion failures to actionable responses:
    400 not XML, 422 not an NF-e, 422 NF-e missing required data.
    """
    kind = error_kind(exc)
    field = getattr(exc, "field", None)
    message = IMPORT_ERROR_MESSAGES.get(kind, "Invoice import failed")
    if field:
        message = f"{message}: {field}"

    logger.info("NF-e rejected (%s): %s", kind, exc)
    body = ImportErrorResponse(kind=kind, message=message, detail=str(exc), field=field)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST if kind == "parse" else status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Global exception handler for unexpected errors.
    """
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc) if settings.DEBUG else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG
    )
