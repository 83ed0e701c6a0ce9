from fastapi import Request

from ..config import Settings
from ..metadata_store import MetadataStore
from ..services.upload import UploadService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_metadata_store(request: Request) -> MetadataStore:
    return request.app.state.metadata_store


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service
