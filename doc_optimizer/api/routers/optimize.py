"""
Document optimization API endpoint.

Routes:
- POST /optimize - Upload one DOCX/TXT file and return its optimized text

The request body is consumed as a raw stream and never buffered by the
framework. The job runs under a time budget and is cancelled if the client
disconnects.

Dependencies: doc_optimizer.api.deps, doc_optimizer.core.optimization
System role: Optimization HTTP API
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request, Response
from starlette.requests import ClientDisconnect

from doc_optimizer.api.deps import (
    get_artifact_store,
    get_ingestion_validator,
    get_metrics_tracker,
    get_pipeline,
    get_settings_dependency,
)
from doc_optimizer.api.routers.router_utils import IngestionValidator, run_until_disconnected
from doc_optimizer.boundary.storage import LocalArtifactStore
from doc_optimizer.configs import Settings
from doc_optimizer.core.exceptions import ErrorCode, OptimizerException
from doc_optimizer.core.metrics_tracker import MetricsTracker
from doc_optimizer.core.optimization import OptimizationPipeline
from doc_optimizer.models import ErrorResponse, OptimizeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/optimize", tags=["optimize"])

# nginx convention for a request the client abandoned
CLIENT_CLOSED_REQUEST = 499

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Rejected upload"},
    422: {"model": ErrorResponse, "description": "Document could not be extracted"},
    503: {"model": ErrorResponse, "description": "Inference service unavailable"},
    500: {"model": ErrorResponse, "description": "Internal error"},
}


def _content_length(request: Request) -> int | None:
    value = request.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@router.post("", response_model=OptimizeResponse, responses=ERROR_RESPONSES)
async def optimize_document(
    request: Request,
    validator: IngestionValidator = Depends(get_ingestion_validator),
    pipeline: OptimizationPipeline = Depends(get_pipeline),
    store: LocalArtifactStore = Depends(get_artifact_store),
    tracker: MetricsTracker = Depends(get_metrics_tracker),
    settings: Settings = Depends(get_settings_dependency),
):
    """
    Optimize one uploaded document.

    Expects multipart/form-data with a single file part (.docx or .txt).

    Args:
        request: Raw request; its body is streamed to the artifact store
        validator: Injected ingestion validator
        pipeline: Injected optimization pipeline
        store: Injected artifact store
        tracker: Injected metrics tracker
        settings: Application settings

    Returns:
        OptimizeResponse: Optimized text and processing metadata

    Raises:
        IngestionError (400), ContentError (422), ServiceUnavailableError (503)
    """
    artifact = await validator.ingest(
        request.stream(),
        request.headers.get("content-type"),
        _content_length(request),
    )

    tracker.job_started()
    # The pipeline deletes the artifact itself; this lease covers a job
    # cancelled before it started running.
    async with store.lease(artifact):
        try:
            result = await run_until_disconnected(
                pipeline.optimize(artifact, settings.job.timeout_seconds),
                request.is_disconnected,
                settings.job.disconnect_poll_seconds,
            )
        except ClientDisconnect:
            tracker.job_cancelled()
            logger.info("Optimization cancelled by client", extra={"file_name": artifact.original_filename})
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        except asyncio.CancelledError:
            tracker.job_cancelled()
            raise
        except OptimizerException as e:
            tracker.job_failed(e.code.value)
            raise
        except Exception:
            tracker.job_failed(ErrorCode.INTERNAL.value)
            raise

    tracker.job_succeeded(result.processing_time_ms)
    return OptimizeResponse.from_result(result)
