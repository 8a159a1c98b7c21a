from __future__ import annotations
import asyncio
import subprocess
import tempfile
import uuid
from pathlib import Path
import structlog
from redis import Redis
from rq import Queue
from sqlalchemy import not_, update
from app.config import settings
from app.db import SessionLocal
from app.models.submission import Submission
from app.services import storage

log = structlog.get_logger()

_queue: Queue | None = None

def _get_queue() -> Queue:
    # RQ queue (lazy single instance)
    global _queue
    if _queue is None:
        _queue = Queue("default", connection=Redis.from_url(settings.redis_url))
    return _queue

def enqueue_transcode(submission_id: str):
    return _get_queue().enqueue(
        transcode_video, submission_id, job_timeout=settings.transcode_timeout_seconds + 60
    )

def ffmpeg_args(in_path: str, out_path: str) -> list[str]:
    # H.264 + AAC with faststart so browsers can start playback before the download completes
    return [
        settings.ffmpeg_path, "-y", "-i", in_path,
        "-c:v", "libx264", "-pix_fmt", "yuv420p", "-preset", "veryfast", "-crf", "23",
        "-c:a", "aac", "-b:a", "128k",
        "-movflags", "+faststart",
        out_path,
    ]

def transcode_bytes(data: bytes, suffix: str) -> bytes:
    with tempfile.TemporaryDirectory(prefix="stagefeed-") as tmp:
        in_path = Path(tmp) / f"in{suffix}"
        out_path = Path(tmp) / "out.mp4"
        in_path.write_bytes(data)
        subprocess.run(
            ffmpeg_args(str(in_path), str(out_path)),
            check=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            timeout=settings.transcode_timeout_seconds,
        )
        return out_path.read_bytes()

async def _source_key(submission_id: uuid.UUID) -> str | None:
    async with SessionLocal() as session:
        s = await session.get(Submission, submission_id)
        return s.video_path if s else None

async def swap_in_transcoded(submission_id: uuid.UUID, source_key: str, target_key: str) -> bool:
    """
    Point the submission at the transcoded object, only if it still references source_key.

    Publishes unless the owner hid the submission in the meantime. Returns False
    when a newer upload replaced the source, in which case the row is untouched.
    """
    async with SessionLocal() as session:
        res = await session.execute(
            update(Submission)
            .where(Submission.id == submission_id, Submission.video_path == source_key)
            .values(video_path=target_key, mime_type="video/mp4", published=not_(Submission.hidden_by_owner))
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        return res.rowcount == 1

async def _run(submission_id: str):
    sid = uuid.UUID(submission_id)
    source_key = await _source_key(sid)
    if not source_key:
        log.warning("transcode_skipped", submission_id=submission_id)
        return
    try:
        data, _ = storage.get_bytes(source_key)
    except FileNotFoundError:
        # replaced by a newer upload before the job started
        log.warning("transcode_skipped", submission_id=submission_id, key=source_key)
        return
    try:
        out = await asyncio.to_thread(transcode_bytes, data, Path(source_key).suffix or ".bin")
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
        stderr = (getattr(e, "stderr", None) or b"")[-2000:].decode(errors="ignore")
        log.error("transcode_failed", submission_id=submission_id, error=type(e).__name__, stderr=stderr)
        raise

    target_key = f"{Path(source_key).with_suffix('')}-h264.mp4"
    storage.put_bytes(target_key, out, "video/mp4")
    if not await swap_in_transcoded(sid, source_key, target_key):
        storage.delete_object(target_key)
        log.info("transcode_superseded", submission_id=submission_id, key=source_key)
        return
    log.info("transcode_done", submission_id=submission_id, bytes_in=len(data), bytes_out=len(out))

    if target_key != source_key:
        storage.delete_object(source_key)

def transcode_video(submission_id: str):
    # RQ entry point (sync); run the async coroutine
    asyncio.run(_run(submission_id))
