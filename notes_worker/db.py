"""Postgres note store using an asyncpg connection pool."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

import asyncpg

from notes_worker.config import (
    DB_COMMAND_TIMEOUT,
    DB_POOL_MAX_SIZE,
    DB_POOL_MIN_SIZE,
    require_database_url,
)
from notes_worker.schemas.note import (
    CreateNoteInput,
    GetNotesQuery,
    Note,
    NotePatch,
    UpdateNoteInput,
)

logger = logging.getLogger(__name__)

NOTE_COLUMNS = """
    id, workspace_id, title, source, content_md, transcript_text,
    summary_text, entities, created_by, created_at, updated_at
"""

# Columns a partial update may touch, in the order they are written.
UPDATABLE_COLUMNS = ("title", "content_md", "transcript_text", "summary_text", "entities")

# Global connection pool
_pool: asyncpg.Pool | None = None


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode json/jsonb columns to Python objects on every pooled connection."""
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name, encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
        )


async def get_pool() -> asyncpg.Pool:
    """Get or create the asyncpg connection pool.

    Returns:
        asyncpg connection pool
    """
    global _pool
    if _pool is None:
        _pool = await asyncpg.create_pool(
            require_database_url(),
            min_size=DB_POOL_MIN_SIZE,
            max_size=DB_POOL_MAX_SIZE,
            command_timeout=DB_COMMAND_TIMEOUT,
            init=_init_connection,
        )
        logger.info("Database connection pool created")
    return _pool


async def close_pool() -> None:
    """Close the connection pool."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None
        logger.info("Database connection pool closed")


def _row_to_note(row: Any) -> Note:
    data = dict(row)
    for key in ("id", "workspace_id", "created_by"):
        data[key] = str(data[key])
    return Note.model_validate(data)


async def fetch_note(note_id: str) -> Note | None:
    """Fetch a note by id.

    Args:
        note_id: Note UUID as string

    Returns:
        The note, or None if it does not exist
    """
    pool = await get_pool()

    query = f"SELECT {NOTE_COLUMNS} FROM notes WHERE id = $1"

    async with pool.acquire() as conn:
        row = await conn.fetchrow(query, note_id)
        return _row_to_note(row) if row else None


async def create_note(note: CreateNoteInput) -> Note:
    """Insert a new note. Summary and entities start empty.

    Args:
        note: Validated note fields

    Returns:
        The stored note
    """
    pool = await get_pool()

    query = f"""
        INSERT INTO notes (workspace_id, title, source, content_md, transcript_text, created_by)
        VALUES ($1, $2, $3, $4, $5, $6)
        RETURNING {NOTE_COLUMNS}
    """

    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            query,
            note.workspace_id,
            note.title,
            note.source,
            note.content_md,
            note.transcript_text,
            note.created_by,
        )

    created = _row_to_note(row)
    logger.info(f"Created {created.source} note {created.id}")
    return created


async def update_note(update: UpdateNoteInput) -> Note | None:
    """Apply a partial update to a note.

    Only fields explicitly set on ``update`` are written; ``updated_at`` is
    always refreshed.

    Args:
        update: Note id plus the fields to change

    Returns:
        The updated note, or None if it does not exist
    """
    pool = await get_pool()

    fields = update.model_dump(include=set(UPDATABLE_COLUMNS), exclude_unset=True)
    if fields.get("title", "") is None:
        # title is NOT NULL; an explicit null means "leave unchanged"
        del fields["title"]

    assignments = ["updated_at = $2"]
    values: list[Any] = [update.id, datetime.now(timezone.utc)]
    for column in UPDATABLE_COLUMNS:
        if column in fields:
            values.append(fields[column])
            assignments.append(f"{column} = ${len(values)}")

    query = f"""
        UPDATE notes
        SET {", ".join(assignments)}
        WHERE id = $1
        RETURNING {NOTE_COLUMNS}
    """

    async with pool.acquire() as conn:
        row = await conn.fetchrow(query, *values)
        return _row_to_note(row) if row else None


async def list_notes(query: GetNotesQuery) -> list[Note]:
    """List the notes of a workspace, newest first.

    Args:
        query: Workspace, optional source filter and optional limit

    Returns:
        Matching notes ordered by created_at descending
    """
    pool = await get_pool()

    conditions = ["workspace_id = $1"]
    values: list[Any] = [query.workspace_id]
    if query.source is not None:
        values.append(query.source)
        conditions.append(f"source = ${len(values)}")

    sql = f"""
        SELECT {NOTE_COLUMNS} FROM notes
        WHERE {" AND ".join(conditions)}
        ORDER BY created_at DESC
    """
    if query.limit is not None:
        values.append(query.limit)
        sql += f" LIMIT ${len(values)}"

    async with pool.acquire() as conn:
        rows = await conn.fetch(sql, *values)
        return [_row_to_note(row) for row in rows]


async def apply_finalisation(note_id: str, patch: NotePatch) -> Note | None:
    """Write a finalised summary and entities to a note.

    Args:
        note_id: Note UUID as string
        patch: Summary, entities and update timestamp

    Returns:
        The updated note, or None if it does not exist
    """
    pool = await get_pool()

    query = f"""
        UPDATE notes
        SET summary_text = $2,
            entities = $3,
            updated_at = $4
        WHERE id = $1
        RETURNING {NOTE_COLUMNS}
    """

    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            query,
            note_id,
            patch.summary_text,
            patch.entities.model_dump(),
            patch.updated_at,
        )
        return _row_to_note(row) if row else None


class PostgresNoteStore:
    """NoteStore backed by the module-level asyncpg pool."""

    async def fetch(self, note_id: str) -> Note | None:
        return await fetch_note(note_id)

    async def update(self, note_id: str, patch: NotePatch) -> Note | None:
        return await apply_finalisation(note_id, patch)
