from fastapi import Request

from ..crud.imports.import_orchestrator import ImportOrchestrator
from ..crud.scheduler.scheduler_service import ComebackScheduler


def get_import_orchestrator(request: Request) -> ImportOrchestrator:
    return request.app.state.import_orchestrator


def get_comeback_scheduler(request: Request) -> ComebackScheduler:
    return request.app.state.comeback_scheduler
