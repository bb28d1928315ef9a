"""Rank tables - blue-green rebuild of read-optimized ranking tables."""

import re
from datetime import timedelta

import duckdb
from loguru import logger
from pydantic import BaseModel, field_validator, model_validator

from app.errors import RankTableError
from settings import RANK_REFRESH_INTERVAL

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_identifier(value: str) -> str:
    if not _IDENTIFIER.match(value):
        raise ValueError(f"Invalid SQL identifier: {value!r}")
    return value


class RankConfig(BaseModel):
    """Rank table owned by a metric processor.

    The table is rebuilt from `live_view` (defaults to ``{table}_live``)
    every `refresh_interval`.
    """

    table: str
    primary_key: str
    indexes: list[str] = []
    live_view: str | None = None
    refresh_interval: timedelta = timedelta(seconds=RANK_REFRESH_INTERVAL)

    @field_validator("table", "primary_key")
    @classmethod
    def _identifier(cls, value: str) -> str:
        return _check_identifier(value)

    @field_validator("indexes")
    @classmethod
    def _index_identifiers(cls, value: list[str]) -> list[str]:
        return [_check_identifier(v) for v in value]

    @model_validator(mode="after")
    def _default_view(self) -> "RankConfig":
        self.live_view = _check_identifier(self.live_view or f"{self.table}_live")
        return self

    @property
    def shadow_table(self) -> str:
        return f"{self.table}_new"

    @property
    def primary_key_index(self) -> str:
        return f"{self.table}_pkey"

    def index_name(self, column: str) -> str:
        return f"{self.table}_{column}_idx"


class RankTableSwap:
    """Rebuild a rank table next to the live one and swap it in atomically.

    Readers of ``config.table`` see the complete old table until the swap
    transaction commits, then the complete new one. Index names are global
    to the schema in DuckDB, so the new table's indexes are created under
    their live names inside the swap transaction, after the old table and
    its indexes are dropped.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection, config: RankConfig):
        self._db = conn
        self.config = config

    def run(self) -> int:
        """Rebuild the table. Returns the number of rows swapped in."""
        cfg = self.config
        logger.info("Rank {}: rebuilding from {}", cfg.table, cfg.live_view)

        self._validate()
        rows = self._build_shadow()
        self._check_primary_key()
        self._swap()

        logger.info("Rank {}: swapped in {} rows", cfg.table, rows)
        return rows

    def _relation_exists(self, name: str) -> bool:
        row = self._db.execute(
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?",
            [name],
        ).fetchone()
        return row[0] > 0

    def _columns(self, table: str) -> set[str]:
        rows = self._db.execute(
            "SELECT column_name FROM information_schema.columns WHERE table_name = ?",
            [table],
        ).fetchall()
        return {r[0] for r in rows}

    def _validate(self) -> None:
        cfg = self.config
        if not self._relation_exists(cfg.live_view):
            raise RankTableError(f"Rank {cfg.table}: live view {cfg.live_view} does not exist")

        columns = self._columns(cfg.live_view)
        missing = [c for c in [cfg.primary_key, *cfg.indexes] if c not in columns]
        if missing:
            raise RankTableError(f"Rank {cfg.table}: columns {missing} not in {cfg.live_view}")

    def _build_shadow(self) -> int:
        cfg = self.config
        # Leftover from an attempt that failed before the swap.
        self._db.execute(f'DROP TABLE IF EXISTS "{cfg.shadow_table}"')
        self._db.execute(f'CREATE TABLE "{cfg.shadow_table}" AS SELECT * FROM "{cfg.live_view}"')
        rows = self._db.execute(f'SELECT COUNT(*) FROM "{cfg.shadow_table}"').fetchone()[0]
        logger.debug("Rank {}: shadow {} built with {} rows", cfg.table, cfg.shadow_table, rows)
        return rows

    def _check_primary_key(self) -> None:
        cfg = self.config
        row = self._db.execute(
            f"""
            SELECT COUNT(*) - COUNT(DISTINCT "{cfg.primary_key}"), COUNT(*) - COUNT("{cfg.primary_key}")
            FROM "{cfg.shadow_table}"
            """
        ).fetchone()
        duplicates, nulls = row
        if duplicates or nulls:
            self._db.execute(f'DROP TABLE IF EXISTS "{cfg.shadow_table}"')
            raise RankTableError(
                f"Rank {cfg.table}: primary key {cfg.primary_key} has {duplicates} duplicates, {nulls} nulls"
            )

    def _swap(self) -> None:
        cfg = self.config
        self._db.execute("BEGIN TRANSACTION")
        try:
            self._db.execute(f'DROP TABLE IF EXISTS "{cfg.table}"')
            self._db.execute(f'ALTER TABLE "{cfg.shadow_table}" RENAME TO "{cfg.table}"')
            self._db.execute(
                f'CREATE UNIQUE INDEX "{cfg.primary_key_index}" ON "{cfg.table}" ("{cfg.primary_key}")'
            )
            for column in cfg.indexes:
                self._db.execute(f'CREATE INDEX "{cfg.index_name(column)}" ON "{cfg.table}" ("{column}")')
            self._db.execute("COMMIT")
        except duckdb.Error as e:
            self._db.execute("ROLLBACK")
            raise RankTableError(f"Rank {cfg.table}: swap failed, live table kept: {e}") from e
