import os, tempfile
from datetime import datetime, timedelta, timezone

# Point the app at a throwaway SQLite file before app.config is imported
_tmp = tempfile.mkdtemp(prefix="stagefeed-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp}/test.db"
os.environ["LIKE_SALT"] = "test-salt"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["TRANSCODE_UPLOADS"] = "0"
os.environ["SERVE_MEDIA_VIA_API"] = "0"
os.environ["MAX_UPLOAD_BYTES"] = str(64 * 1024)

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient

from app.db import Base, engine, SessionLocal
from app.main import app
from app.models.event import Event
from app.models.invite_code import InviteCode
from app.models.submission import Submission  # noqa: F401  register tables
from app.models.like import Like  # noqa: F401
from app.services import storage


def now_utc():
    return datetime.now(timezone.utc)


def mp4_bytes(size: int = 2048) -> bytes:
    # ftyp box with the isom brand, padded with zeros
    head = b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00isomiso2"
    return head + b"\x00" * max(0, size - len(head))


@pytest_asyncio.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def session(db):
    async with SessionLocal() as s:
        yield s


@pytest_asyncio.fixture
async def client(db):
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class FakeStorage:
    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}

    def put_bytes(self, key, data, content_type):
        self.objects[key] = (data, content_type)

    def get_bytes(self, key):
        if key not in self.objects:
            raise FileNotFoundError(key)
        return self.objects[key]

    def stat(self, key):
        data, content_type = self.get_bytes(key)
        return len(data), content_type

    def iter_range(self, key, offset=0, length=0, chunk_size=4):
        data, _ = self.get_bytes(key)
        end = offset + length if length else len(data)
        for i in range(offset, end, chunk_size):
            yield data[i:min(i + chunk_size, end)]

    def delete_object(self, key):
        self.objects.pop(key, None)

    def presign_get(self, key, expiry_seconds=None):
        return f"https://s3.test/videos/{key}?X-Amz-Expires={expiry_seconds or 86400}"


@pytest.fixture(autouse=True)
def fake_storage(monkeypatch):
    fake = FakeStorage()
    for name in ("put_bytes", "get_bytes", "stat", "iter_range", "delete_object", "presign_get"):
        monkeypatch.setattr(storage, name, getattr(fake, name))
    return fake


async def make_event(session, *, live: bool = False, submissions_open: bool = False, title: str = "Showcase", **overrides) -> Event:
    """Create an event whose live / submission windows straddle now as requested."""
    n = now_utc()
    starts = n - timedelta(hours=1) if live else n + timedelta(days=1)
    sub_open = n - timedelta(hours=1) if submissions_open else n - timedelta(days=3)
    sub_close = n + timedelta(hours=1) if submissions_open else n - timedelta(days=2)
    values = dict(
        title=title,
        starts_at=starts,
        ends_at=starts + timedelta(hours=2),
        submissions_open_at=sub_open,
        submissions_close_at=sub_close,
    )
    values.update(overrides)
    ev = Event(**values)
    session.add(ev)
    await session.commit()
    await session.refresh(ev)
    return ev


async def make_code(session, event: Event, code: str = "ABCD", used_by=None) -> InviteCode:
    inv = InviteCode(code=code, event_id=event.id, used_by=used_by, used_at=now_utc() if used_by else None)
    session.add(inv)
    await session.commit()
    return inv


async def anon_headers(ac: AsyncClient) -> dict:
    r = await ac.post("/auth/anonymous")
    assert r.status_code == 201, r.text
    return {"Authorization": f"Bearer {r.json()['access']}"}
