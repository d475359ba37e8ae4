"""Tests for the finalisation worker loop."""

import asyncio
import json
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from notes_worker.config import DEAD_LETTER_QUEUE, MAX_RETRIES, QUEUE_NAME
from notes_worker.errors import InvalidStateError, NotFoundError
from notes_worker.main import parse_job, process_job_with_retry, worker_task
from notes_worker.schemas.entities import ExtractedEntities, FinaliseResult
from notes_worker.schemas.note import FinaliseJob

NOTE_ID = "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def mock_redis():
    """Create a mock redis client."""
    client = MagicMock()
    client.rpush = AsyncMock()
    client.lpush = AsyncMock()
    client.brpop = AsyncMock()
    return client


@pytest.fixture
def mock_finaliser():
    """Create a mock finaliser returning an empty result."""
    finaliser = MagicMock()
    finaliser.finalise = AsyncMock(
        return_value=FinaliseResult(summary_text="Meeting summary", entities=ExtractedEntities())
    )
    return finaliser


@pytest.mark.asyncio
async def test_process_job_success(mock_redis, mock_finaliser):
    """Test a job that finalises cleanly."""
    await process_job_with_retry(mock_redis, mock_finaliser, FinaliseJob(noteId=NOTE_ID))

    mock_finaliser.finalise.assert_awaited_once_with(NOTE_ID)
    mock_redis.rpush.assert_not_called()
    mock_redis.lpush.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [NotFoundError(NOTE_ID), InvalidStateError("Note must have transcript text to finalise")],
)
async def test_process_job_domain_error_dead_letters(mock_redis, mock_finaliser, error):
    """Test that deterministic failures are not retried."""
    mock_finaliser.finalise.side_effect = error

    await process_job_with_retry(mock_redis, mock_finaliser, FinaliseJob(noteId=NOTE_ID, attempt=1))

    mock_redis.rpush.assert_not_called()
    queue, payload = mock_redis.lpush.call_args[0]
    parked = json.loads(payload)
    assert queue == DEAD_LETTER_QUEUE
    assert parked["noteId"] == NOTE_ID
    assert parked["error"] == str(error)


@pytest.mark.asyncio
async def test_process_job_store_error_requeues(mock_redis, mock_finaliser):
    """Test that collaborator failures are retried with backoff."""
    mock_finaliser.finalise.side_effect = ConnectionError("database unavailable")
    before = time.time()

    await process_job_with_retry(mock_redis, mock_finaliser, FinaliseJob(noteId=NOTE_ID, attempt=1))

    queue, payload = mock_redis.rpush.call_args[0]
    job = json.loads(payload)
    assert queue == QUEUE_NAME
    assert job["noteId"] == NOTE_ID
    assert job["attempt"] == 2
    assert job["retryAfter"] >= before + 2
    mock_redis.lpush.assert_not_called()


@pytest.mark.asyncio
async def test_process_job_store_error_exhausted(mock_redis, mock_finaliser):
    """Test dead-lettering after the last attempt."""
    mock_finaliser.finalise.side_effect = ConnectionError("database unavailable")

    await process_job_with_retry(
        mock_redis, mock_finaliser, FinaliseJob(noteId=NOTE_ID, attempt=MAX_RETRIES)
    )

    mock_redis.rpush.assert_not_called()
    queue, payload = mock_redis.lpush.call_args[0]
    assert queue == DEAD_LETTER_QUEUE
    assert json.loads(payload)["error"] == "database unavailable"


@pytest.mark.asyncio
async def test_numeric_string_attempt_is_retried(mock_redis, mock_finaliser):
    """Test that a numeric-string attempt is coerced rather than dropping the job."""
    mock_finaliser.finalise.side_effect = ConnectionError("database unavailable")
    job = parse_job(json.dumps({"noteId": NOTE_ID, "attempt": "2"}))

    await process_job_with_retry(mock_redis, mock_finaliser, job)

    queue, payload = mock_redis.rpush.call_args[0]
    assert queue == QUEUE_NAME
    assert json.loads(payload)["attempt"] == 3


def test_parse_job():
    """Test decoding a queued job."""
    job = parse_job(f'{{"noteId": "{NOTE_ID}", "attempt": 2, "retryAfter": 1700000000.5}}'.encode())

    assert str(job.note_id) == NOTE_ID
    assert job.attempt == 2
    assert job.retry_after == 1700000000.5


def test_parse_job_defaults():
    """Test defaults for a freshly enqueued job."""
    job = parse_job(f'{{"noteId": "{NOTE_ID}"}}')

    assert job.attempt == 1
    assert job.retry_after == 0


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        f'["{NOTE_ID}"]',
        '{"attempt": 1}',
        '{"noteId": 42}',
        '{"noteId": "not-a-uuid"}',
        f'{{"noteId": "{NOTE_ID}", "attempt": "two"}}',
        f'{{"noteId": "{NOTE_ID}", "attempt": 0}}',
        f'{{"noteId": "{NOTE_ID}", "retryAfter": "soon"}}',
    ],
)
def test_parse_job_malformed(raw):
    """Test rejecting payloads that are not valid finalise jobs."""
    with pytest.raises(ValidationError):
        parse_job(raw)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        b'{"attempt": 1}',
        b'{"noteId": "not-a-uuid", "attempt": "2"}',
        f'{{"noteId": "{NOTE_ID}", "attempt": "two"}}'.encode(),
        f'{{"noteId": "{NOTE_ID}", "retryAfter": "soon"}}'.encode(),
    ],
)
async def test_worker_task_dead_letters_malformed_job(mock_redis, mock_finaliser, raw):
    """Test that the worker parks malformed jobs and keeps going."""
    mock_redis.brpop.side_effect = [
        (QUEUE_NAME, raw),
        (QUEUE_NAME, f'{{"noteId": "{NOTE_ID}"}}'.encode()),
        asyncio.CancelledError(),
    ]

    with pytest.raises(asyncio.CancelledError):
        await worker_task(mock_redis, mock_finaliser)

    queue, payload = mock_redis.lpush.call_args_list[0][0]
    parked = json.loads(payload)
    assert queue == DEAD_LETTER_QUEUE
    assert parked["raw"] == raw.decode()
    assert parked["error"].startswith("Malformed finalise job")
    mock_finaliser.finalise.assert_awaited_once_with(NOTE_ID)
    mock_redis.rpush.assert_not_called()
