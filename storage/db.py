#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import sqlite3
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, db_path: Union[str, Path] = "pomotree.db"):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row

    def _table_exists(self, name: str) -> bool:
        r = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (name,),
        ).fetchone()
        return bool(r)

    def _cols(self, table: str) -> List[str]:
        try:
            return [
                r["name"]
                for r in self.conn.execute(f"PRAGMA table_info({table});").fetchall()
            ]
        except sqlite3.Error:
            return []

    def init_schema(self):
        cur = self.conn.cursor()

        # named scalar settings / timer state
        cur.execute("""
            CREATE TABLE IF NOT EXISTS app_state (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)

        # JSON documents (accumulation map, interruption log)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS app_blobs (
                key TEXT PRIMARY KEY,
                data BLOB NOT NULL,
                updated_at INTEGER NOT NULL DEFAULT 0
            );
        """)

        # older files were created before blobs carried a timestamp
        if "updated_at" not in self._cols("app_blobs"):
            cur.execute(
                "ALTER TABLE app_blobs ADD COLUMN updated_at INTEGER NOT NULL DEFAULT 0;"
            )

        self.conn.commit()

    def close(self):
        try:
            self.conn.close()
        except sqlite3.Error:
            logger.warning("failed to close %s", self.db_path, exc_info=True)
