"""SQL timing hooks: a latency histogram plus slow-query warnings."""

from __future__ import annotations

import logging
import os
import time

from prometheus_client import Histogram
from sqlalchemy import event
from sqlalchemy.engine import Engine

SLOW_QUERY_MS = int(os.getenv("DB_SLOW_QUERY_MS", "200"))

logger = logging.getLogger("obs")

db_query_seconds = Histogram(
    "db_query_seconds", "SQL statement latency", ["db", "operation"]
)


def _operation(statement: str) -> str:
    head = statement.lstrip().split(None, 1)
    return head[0].lower() if head else "unknown"


def _shorten(statement: str, limit: int = 200) -> str:
    sql = " ".join(statement.split())
    return sql if len(sql) <= limit else sql[: limit - 3] + "..."


def add_query_logger(engine: Engine, name: str) -> None:
    """Time every statement on ``engine``; statements over
    ``DB_SLOW_QUERY_MS`` are logged at warning level."""

    target = getattr(engine, "sync_engine", engine)

    @event.listens_for(target, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start", []).append(time.perf_counter())

    @event.listens_for(target, "after_cursor_execute")
    def _finish(conn, cursor, statement, parameters, context, executemany):
        started = conn.info["query_start"].pop()
        elapsed = time.perf_counter() - started
        db_query_seconds.labels(db=name, operation=_operation(statement)).observe(
            elapsed
        )
        if elapsed * 1000 > SLOW_QUERY_MS:
            logger.warning(
                "slow query %dms db=%s sql=%s",
                int(elapsed * 1000),
                name,
                _shorten(statement),
            )
