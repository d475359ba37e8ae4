import asyncio
import json
import logging
import time

import redis.asyncio as aioredis
from pydantic import ValidationError

from notes_worker import db
from notes_worker.config import (
    DEAD_LETTER_QUEUE,
    LOG_LEVEL,
    MAX_RETRIES,
    QUEUE_NAME,
    REDIS_URL,
    WORKER_CONCURRENCY,
    require_database_url,
)
from notes_worker.errors import FinaliseError
from notes_worker.finaliser import MeetingFinaliser
from notes_worker.schemas.note import FinaliseJob

logger = logging.getLogger(__name__)


async def dead_letter(redis_client: aioredis.Redis, job: dict, error: str) -> None:
    """Park a job that will not be retried.

    Args:
        redis_client: Redis client
        job: Job dictionary
        error: Failure reason stored alongside the job
    """
    await redis_client.lpush(DEAD_LETTER_QUEUE, json.dumps({**job, "error": error}))
    logger.error(f"Job for note {job.get('noteId', 'unknown')} moved to dead-letter queue: {error}")


async def process_job_with_retry(
    redis_client: aioredis.Redis, finaliser: MeetingFinaliser, job: FinaliseJob
) -> None:
    """Finalise the note named by a job, with retry and dead-letter handling.

    Domain failures (missing note, not a meeting, no transcript) are
    dead-lettered immediately. Other failures are re-queued with exponential
    backoff until MAX_RETRIES attempts have been made.

    Args:
        redis_client: Redis client
        finaliser: Meeting finaliser
        job: Validated finalise job
    """
    note_id = str(job.note_id)
    attempt = job.attempt

    # Check if job should be delayed for retry backoff
    if job.retry_after > time.time():
        delay = job.retry_after - time.time()
        logger.info(f"Job for note {note_id} delayed for {delay:.1f}s (retry backoff)")
        if delay > 0:
            await asyncio.sleep(delay)

    try:
        start_time = time.time()

        result = await finaliser.finalise(note_id)

        elapsed_ms = int((time.time() - start_time) * 1000)

        # Log structured completion event
        logger.info(
            json.dumps(
                {
                    "event": "finalise_complete",
                    "noteId": note_id,
                    "attempt": attempt,
                    "people": len(result.entities.people),
                    "decisions": len(result.entities.decisions),
                    "risks": len(result.entities.risks),
                    "dates": len(result.entities.dates),
                    "elapsed_ms": elapsed_ms,
                }
            )
        )

    except FinaliseError as e:
        await dead_letter(redis_client, job.model_dump(mode="json", by_alias=True), str(e))

    except Exception as e:
        logger.error(f"Job for note {note_id} failed (attempt {attempt}/{MAX_RETRIES}): {e}")

        if attempt < MAX_RETRIES:
            retry = job.model_copy(
                update={"attempt": attempt + 1, "retry_after": time.time() + min(2**attempt, 60)}
            )
            await redis_client.rpush(QUEUE_NAME, retry.model_dump_json(by_alias=True))
            logger.info(f"Re-queued note {note_id} for retry {attempt + 1}")
        else:
            await dead_letter(redis_client, job.model_dump(mode="json", by_alias=True), str(e))


def parse_job(raw: bytes | str) -> FinaliseJob:
    """Decode and validate a queued job.

    Raises:
        ValidationError: The payload is not valid JSON, the note id is not a
            UUID, or the retry bookkeeping has the wrong type
    """
    return FinaliseJob.model_validate_json(raw)


async def worker_task(redis_client: aioredis.Redis, finaliser: MeetingFinaliser) -> None:
    """Worker task that processes jobs from the queue.

    Args:
        redis_client: Redis client
        finaliser: Meeting finaliser shared by all worker tasks
    """
    while True:
        try:
            _, raw = await redis_client.brpop(QUEUE_NAME)
            try:
                job = parse_job(raw)
            except ValidationError as e:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8", errors="replace")
                await dead_letter(redis_client, {"raw": raw}, f"Malformed finalise job: {e}")
                continue

            await process_job_with_retry(redis_client, finaliser, job)

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in worker task: {e}", exc_info=True)
            # Brief pause before retrying to avoid tight error loop
            await asyncio.sleep(1)


async def worker_loop() -> None:
    """Main worker loop with multiple concurrent tasks."""
    require_database_url()
    redis_client = aioredis.from_url(REDIS_URL)
    finaliser = MeetingFinaliser(db.PostgresNoteStore())

    logger.info(f"Worker started with concurrency={WORKER_CONCURRENCY}")
    logger.info(f"Listening on queue: {QUEUE_NAME}")
    logger.info(f"Dead-letter queue: {DEAD_LETTER_QUEUE}")

    workers = [
        asyncio.create_task(worker_task(redis_client, finaliser))
        for _ in range(WORKER_CONCURRENCY)
    ]

    try:
        await asyncio.gather(*workers)
    finally:
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        await redis_client.aclose()
        await db.close_pool()


def main():
    """Entry point for the finalisation worker."""
    logging.basicConfig(
        level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    try:
        asyncio.run(worker_loop())
    except KeyboardInterrupt:
        logger.info("Worker stopped by user")


if __name__ == "__main__":
    main()
