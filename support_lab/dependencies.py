"""
FastAPI dependencies resolving components from application state

Components are built once in create_app() and attached to app.state.
"""
from fastapi import Request

from support_lab.config import Settings
from support_lab.repositories.ticket_repository import TicketRepository
from support_lab.services.database import Database
from support_lab.services.external_status import ExternalStatusClient, StatusHistory
from support_lab.services.health import HealthAggregator
from support_lab.services.storage import ObjectStorage


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_ticket_repository(request: Request) -> TicketRepository:
    return request.app.state.ticket_repository


def get_health_aggregator(request: Request) -> HealthAggregator:
    return request.app.state.health


def get_status_client(request: Request) -> ExternalStatusClient:
    return request.app.state.status_client


def get_status_history(request: Request) -> StatusHistory:
    return request.app.state.status_history


def get_object_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage
