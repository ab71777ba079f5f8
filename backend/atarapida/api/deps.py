"""Dependencias compartidas por los routers.

Los servicios se construyen una sola vez en el lifespan y se guardan en
`app.state`; aquí sólo los recuperamos.
"""

from __future__ import annotations

import secrets

from fastapi import Header, Request

from atarapida.core.config import Settings
from atarapida.core.errors import AuthError
from atarapida.services.job_store import JobStore
from atarapida.services.pipeline_service import JobLifecycleManager
from atarapida.services.upload_service import UploadService

APP_KEY_HEADER = "X-APP-KEY"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_lifecycle(request: Request) -> JobLifecycleManager:
    return request.app.state.lifecycle


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


def require_app_key(
    request: Request,
    x_app_key: str | None = Header(default=None, alias=APP_KEY_HEADER),
) -> None:
    """Rechaza la petición si la cabecera no coincide con el secreto configurado.

    Sólo mira cabeceras: corre antes de leer el cuerpo de la subida.
    """
    expected = get_app_settings(request).app_api_key
    if not x_app_key or not expected:
        raise AuthError()
    if not secrets.compare_digest(x_app_key.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError()
