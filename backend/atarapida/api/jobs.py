from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from starlette.datastructures import UploadFile

from atarapida.api.deps import (
    get_job_store,
    get_lifecycle,
    get_upload_service,
    require_app_key,
)
from atarapida.core.errors import (
    BadRequestError,
    LengthRequiredError,
    NotFoundError,
    PayloadTooLargeError,
)
from atarapida.services.job_store import JobStore
from atarapida.services.pipeline_service import JobLifecycleManager
from atarapida.services.upload_service import UploadService

router = APIRouter(tags=["jobs"], dependencies=[Depends(require_app_key)])

AUDIO_FIELD = "audio"

# Margen para las cabeceras y los límites del multipart
MULTIPART_OVERHEAD_BYTES = 64 * 1024


@router.post(
    "/transcribe",
    summary="Upload an audio file and start a transcription job",
    status_code=status.HTTP_202_ACCEPTED,
)
async def create_transcription(
    request: Request,
    lifecycle: JobLifecycleManager = Depends(get_lifecycle),
    uploads: UploadService = Depends(get_upload_service),
) -> dict:
    # Starlette guarda el multipart entero antes de devolverlo, así que el
    # tamaño se valida con Content-Length; sin él (chunked) no se acepta.
    content_length = request.headers.get("content-length", "")
    if not content_length.isdigit():
        raise LengthRequiredError()
    if int(content_length) > uploads.max_bytes + MULTIPART_OVERHEAD_BYTES:
        raise PayloadTooLargeError()

    # El formulario se lee aquí, después de validar la cabecera de auth
    async with request.form(max_files=1) as form:
        audio = form.get(AUDIO_FIELD)
        if not isinstance(audio, UploadFile):
            raise BadRequestError(f'Missing file field "{AUDIO_FIELD}"')
        file_path = await uploads.save(audio)

    try:
        job_id = lifecycle.submit(file_path, file_path.name)
    except Exception:
        file_path.unlink(missing_ok=True)
        raise
    return {"jobId": job_id}


@router.get("/jobs/{job_id}", summary="Get transcription job status")
async def get_job_status(
    job_id: str,
    job_store: JobStore = Depends(get_job_store),
) -> dict:
    job = job_store.get(job_id)
    if job is None:
        raise NotFoundError()
    return job.to_public()
