from __future__ import annotations

import asyncio
import csv
import io
import uuid
from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from compliance_service.app import models  # noqa: F401
from compliance_service.app.crud.imports.import_orchestrator import ImportOrchestrator
from compliance_service.app.enum.import_enum import DuplicatePolicy
from compliance_service.app.main import create_app
from shared.core.auth import create_access_token
from shared.core.config import Settings
from shared.core.database import Base, build_engine, get_db
from shared.core.exceptions import NotFoundError
from shared.utils.task_runner import TaskRunner

TODAY = date(2025, 1, 15)


class MemoryBlobStore:
    def __init__(self):
        self.blobs: dict[str, bytes] = {}

    async def save(self, filename: str, content: bytes) -> str:
        file_ref = f"{uuid.uuid4().hex}{Path(filename or '').suffix.lower()}"
        self.blobs[file_ref] = content
        return file_ref

    async def download(self, file_ref: str) -> bytes:
        if file_ref not in self.blobs:
            raise NotFoundError(f"File not found: {file_ref}")
        return self.blobs[file_ref]


def csv_bytes(rows: list[list]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue().encode("utf-8")


@pytest.fixture()
def engine(tmp_path: Path):
    engine = build_engine(f"sqlite:///{tmp_path / 'compliance.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def officer_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path / "import-tmp"


@pytest.fixture()
def test_settings(tmp_path: Path, temp_dir: Path) -> Settings:
    return Settings(
        UPLOAD_DIR=str(tmp_path / "uploads"),
        IMPORT_TEMP_DIR=str(temp_dir),
        IMPORT_BATCH_SIZE=2,
        IMPORT_ROW_LOG_CAP=1000,
        IMPORT_PREVIEW_ROWS=20,
        COMEBACK_SWEEP_ENABLED=False,
    )


@pytest.fixture()
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture()
def orchestrator(session_factory, blob_store, test_settings) -> ImportOrchestrator:
    return ImportOrchestrator(
        session_factory=session_factory,
        blob_store=blob_store,
        task_runner=TaskRunner(),
        settings=test_settings,
        clock=lambda: TODAY,
    )


@pytest.fixture()
def upload(orchestrator, db, officer_id):
    """Upload a file through the orchestrator and return the job id."""

    def _upload(rows_or_bytes, filename: str = "businesses.csv") -> uuid.UUID:
        content = rows_or_bytes if isinstance(rows_or_bytes, bytes) else csv_bytes(rows_or_bytes)
        job = asyncio.run(orchestrator.upload(db, filename, content, officer_id))
        return job.id

    return _upload


@pytest.fixture()
def run_import(orchestrator, officer_id):
    """Start processing and wait for the detached batch loop to finish."""

    def _run(import_id, mapping=None, policy=DuplicatePolicy.REVIEW, reprocess=False):
        async def _go():
            session = orchestrator.session_factory()
            try:
                if reprocess:
                    orchestrator.reprocess(session, import_id, officer_id)
                else:
                    orchestrator.start_processing(
                        session, import_id, mapping, policy, officer_id)
            finally:
                session.close()
            await orchestrator.task_runner.drain()

        asyncio.run(_go())

    return _run


@pytest.fixture()
def auth_headers(officer_id) -> dict:
    token = create_access_token(
        {"user_id": str(officer_id), "name": "Test Officer", "role": "officer"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client(engine, session_factory, test_settings, blob_store):
    app = create_app(
        settings=test_settings,
        engine=engine,
        session_factory=session_factory,
        blob_store=blob_store,
    )

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
