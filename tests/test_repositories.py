import asyncio

import pytest
from sqlalchemy.dialects import postgresql

from factory_ops.repositories.base import BaseRepository
from factory_ops.repositories.external import ExternalRepository
from factory_ops.repositories.logistics import LogisticsRepository
from factory_ops.repositories.quality import QualityRepository


@pytest.fixture
def captured(monkeypatch):
    """Capture the statement passed to BaseRepository.scalar, compiled for PostgreSQL."""
    seen = {}

    async def scalar(self, statement, params=None):
        compiled = statement.compile(dialect=postgresql.dialect())
        seen["sql"] = str(compiled)
        seen["params"] = compiled.params
        return seen.get("result")

    monkeypatch.setattr(BaseRepository, "scalar", scalar)
    return seen


def test_last_ncr_number_orders_on_numeric_sequence(session, captured):
    captured["result"] = "NCR-2025-10000"
    assert asyncio.run(QualityRepository(session).last_ncr_number(2025)) == "NCR-2025-10000"
    assert "CAST(substr(" in captured["sql"]
    assert "AS INTEGER) DESC" in captured["sql"]
    assert "^NCR-2025-[0-9]+$" in captured["params"].values()


def test_carton_prefix_count_escapes_like_wildcards(session, captured):
    captured["result"] = 2
    assert asyncio.run(LogisticsRepository(session).count_cartons_with_prefix("WO_1%-B1-C")) == 2
    assert "ESCAPE '/'" in captured["sql"]
    assert "WO/_1/%-B1-C" in captured["params"].values()


def test_open_moves_for_batch_excludes_closed_and_current(session, captured):
    captured["result"] = None
    count = asyncio.run(ExternalRepository(session).count_open_moves_for_batch("b-1", exclude_move_id="m-1"))
    assert count == 0
    assert "NOT IN" in captured["sql"]
    assert "m-1" in captured["params"].values()
