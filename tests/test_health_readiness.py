from __future__ import annotations

from datetime import UTC, datetime

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

import app.main as main_module

fixed_now = datetime(2026, 2, 19, 12, 0, tzinfo=UTC)


class FakeSession:
    def __init__(self, error: Exception | None) -> None:
        self.error = error
        self.statements: list[str] = []

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def execute(self, statement) -> None:
        self.statements.append(str(statement))
        if self.error is not None:
            raise self.error


def use_session(monkeypatch: pytest.MonkeyPatch, error: Exception | None = None) -> FakeSession:
    session = FakeSession(error)
    monkeypatch.setattr(main_module, "SessionLocal", lambda: session)
    return session


@pytest.fixture(autouse=True)
def freeze_time(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main_module, "utc_now", lambda: fixed_now)


@pytest.mark.asyncio
async def test_healthcheck_does_not_touch_database(monkeypatch: pytest.MonkeyPatch) -> None:
    session = use_session(monkeypatch, RuntimeError("must not be called"))

    assert await main_module.healthcheck() == {"status": "ok"}
    assert session.statements == []


@pytest.mark.asyncio
async def test_readiness_runs_select_one_and_reports_ready(monkeypatch: pytest.MonkeyPatch) -> None:
    session = use_session(monkeypatch)

    response = await main_module.readiness_check()

    assert session.statements == ["SELECT 1"]
    assert response == {"status": "ready", "database": "ok", "timestamp": fixed_now.isoformat()}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        OperationalError("SELECT 1", {}, Exception("connection reset")),
        ConnectionRefusedError("postgres is down"),
    ],
)
async def test_readiness_returns_503_on_database_or_network_errors(
    monkeypatch: pytest.MonkeyPatch,
    error: Exception,
) -> None:
    use_session(monkeypatch, error)

    with pytest.raises(HTTPException) as exc:
        await main_module.readiness_check()
    assert exc.value.status_code == 503
    assert exc.value.detail == "Database is not ready"


@pytest.mark.asyncio
async def test_readiness_does_not_hide_programming_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    use_session(monkeypatch, RuntimeError("bad wiring"))

    with pytest.raises(RuntimeError):
        await main_module.readiness_check()
