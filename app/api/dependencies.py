"""
Route dependencies.

Services are built once in the application lifespan and kept on app.state.
"""

from fastapi import Request

from app.services.intake_filters import IntakeFilters
from app.services.ingestion_worker import WorkerManager
from app.services.pipeline import IngestionPipeline
from app.services.query_service import QueryService


def get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


def get_workers(request: Request) -> WorkerManager:
    return request.app.state.workers


def get_intake_filters(request: Request) -> IntakeFilters:
    return request.app.state.filters
