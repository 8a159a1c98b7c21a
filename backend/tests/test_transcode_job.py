from __future__ import annotations
import asyncio
import subprocess
import uuid
import pytest

from app.db import SessionLocal
from app.jobs import transcode_video as job
from app.models.submission import Submission
from app.services.submissions import unpublish
from conftest import make_event


def test_ffmpeg_args_produce_faststart_h264():
    args = job.ffmpeg_args("/tmp/in.mov", "/tmp/out.mp4")
    assert args[0] == job.settings.ffmpeg_path
    assert args[args.index("-c:v") + 1] == "libx264"
    assert args[args.index("-movflags") + 1] == "+faststart"
    assert args[-1] == "/tmp/out.mp4"


async def _pending(session, ev, key) -> Submission:
    sub = Submission(event_id=ev.id, user_id=uuid.uuid4(), display_name="Act",
                     video_path=key, mime_type="video/quicktime", published=False)
    session.add(sub)
    await session.commit()
    await session.refresh(sub)
    return sub


@pytest.mark.asyncio
async def test_transcode_replaces_video_and_publishes(session, fake_storage, monkeypatch):
    ev = await make_event(session, submissions_open=True)
    sub = await _pending(session, ev, "u1/ev-1.mov")
    fake_storage.put_bytes("u1/ev-1.mov", b"raw-mov", "video/quicktime")
    seen = []
    monkeypatch.setattr(job, "transcode_bytes", lambda data, suffix: seen.append((data, suffix)) or b"mp4-out")

    await job._run(str(sub.id))

    assert seen == [(b"raw-mov", ".mov")]
    assert fake_storage.objects == {"u1/ev-1-h264.mp4": (b"mp4-out", "video/mp4")}
    async with SessionLocal() as s:
        fresh = await s.get(Submission, sub.id)
        assert fresh.published is True
        assert fresh.video_path == "u1/ev-1-h264.mp4"
        assert fresh.mime_type == "video/mp4"


@pytest.mark.asyncio
async def test_failed_transcode_leaves_submission_hidden(session, fake_storage, monkeypatch):
    ev = await make_event(session, submissions_open=True)
    sub = await _pending(session, ev, "u2/ev-1.mov")
    fake_storage.put_bytes("u2/ev-1.mov", b"raw", "video/quicktime")

    def boom(data, suffix):
        raise subprocess.CalledProcessError(1, ["ffmpeg"], stderr=b"Invalid data found")
    monkeypatch.setattr(job, "transcode_bytes", boom)

    with pytest.raises(subprocess.CalledProcessError):
        await job._run(str(sub.id))

    async with SessionLocal() as s:
        fresh = await s.get(Submission, sub.id)
        assert fresh.published is False
        assert fresh.video_path == "u2/ev-1.mov"
    assert "u2/ev-1.mov" in fake_storage.objects


@pytest.mark.asyncio
async def test_transcode_respects_owner_hide(session, fake_storage, monkeypatch):
    ev = await make_event(session, submissions_open=True)
    sub = await _pending(session, ev, "u3/ev-1.mov")
    fake_storage.put_bytes("u3/ev-1.mov", b"raw", "video/quicktime")
    monkeypatch.setattr(job, "transcode_bytes", lambda data, suffix: b"mp4-out")

    await unpublish(session, user_id=sub.user_id, event_id=ev.id)
    await job._run(str(sub.id))

    async with SessionLocal() as s:
        fresh = await s.get(Submission, sub.id)
        assert fresh.published is False
        assert fresh.hidden_by_owner is True
        assert fresh.video_path == "u3/ev-1-h264.mp4"


@pytest.mark.asyncio
async def test_reupload_during_transcode_keeps_newer_video(session, fake_storage, monkeypatch):
    ev = await make_event(session, submissions_open=True)
    sub = await _pending(session, ev, "u4/ev-1.mov")
    fake_storage.put_bytes("u4/ev-1.mov", b"old", "video/quicktime")
    loop = asyncio.get_running_loop()

    async def reupload():
        async with SessionLocal() as s:
            row = await s.get(Submission, sub.id)
            row.video_path = "u4/ev-2.mp4"
            row.mime_type = "video/mp4"
            await s.commit()
        fake_storage.put_bytes("u4/ev-2.mp4", b"new", "video/mp4")
        fake_storage.delete_object("u4/ev-1.mov")

    def transcode_while_reuploading(data, suffix):
        # runs in a worker thread while the new upload lands
        asyncio.run_coroutine_threadsafe(reupload(), loop).result(timeout=10)
        return b"mp4-out"
    monkeypatch.setattr(job, "transcode_bytes", transcode_while_reuploading)

    await job._run(str(sub.id))

    async with SessionLocal() as s:
        fresh = await s.get(Submission, sub.id)
        assert fresh.video_path == "u4/ev-2.mp4"
        assert fresh.mime_type == "video/mp4"
        assert fresh.published is False
    assert fake_storage.objects == {"u4/ev-2.mp4": (b"new", "video/mp4")}


@pytest.mark.asyncio
async def test_swap_is_a_no_op_when_source_changed(session):
    ev = await make_event(session, submissions_open=True)
    sub = await _pending(session, ev, "u5/ev-2.mov")

    assert await job.swap_in_transcoded(sub.id, "u5/ev-1.mov", "u5/ev-1-h264.mp4") is False
    assert await job.swap_in_transcoded(sub.id, "u5/ev-2.mov", "u5/ev-2-h264.mp4") is True

    async with SessionLocal() as s:
        fresh = await s.get(Submission, sub.id)
        assert fresh.video_path == "u5/ev-2-h264.mp4"
        assert fresh.published is True
