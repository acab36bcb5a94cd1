from __future__ import annotations
import aiosqlite
from datetime import datetime
from typing import List
from ..domain.models import MeasurementRecord


class SQLiteRepository:
    def __init__(self, path: str) -> None:
        self._path = path

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS measurements (
                    ts_utc TEXT NOT NULL,
                    scenario TEXT NOT NULL,
                    max_light_level REAL NOT NULL,
                    n_samples INTEGER NOT NULL,
                    change_ms REAL
                )
                """
            )
            await db.execute("CREATE INDEX IF NOT EXISTS idx_measurements_ts ON measurements(ts_utc)")
            await db.commit()

    async def insert_measurement(self, m: MeasurementRecord) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                "INSERT INTO measurements(ts_utc,scenario,max_light_level,n_samples,change_ms) VALUES (?,?,?,?,?)",
                (m.ts_utc.isoformat(), m.scenario_json, float(m.max_light_level), m.n_samples, m.change_ms),
            )
            await db.commit()

    async def query_measurements(self, limit: int) -> List[MeasurementRecord]:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute(
                """
                SELECT ts_utc,scenario,max_light_level,n_samples,change_ms
                FROM measurements
                ORDER BY ts_utc DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = await cur.fetchall()
        out: list[MeasurementRecord] = []
        for ts, scenario, max_level, n, change in rows:
            out.append(
                MeasurementRecord(
                    ts_utc=datetime.fromisoformat(ts),
                    scenario_json=scenario,
                    max_light_level=float(max_level),
                    n_samples=int(n),
                    change_ms=change,
                )
            )
        return list(reversed(out))
