"""
Pytest fixtures for testing.
"""
import os
import tempfile

# Keep the server's data directory out of the user's home during tests
os.environ.setdefault('BRIEFCAST_DATA_DIR', tempfile.mkdtemp(prefix='briefcast-test-'))

from typing import AsyncGenerator, List
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from briefcast.models import Base
from briefcast.schemas.pipeline import ContentRecord, DialogueLine
from briefcast.services.dispatcher import JobDispatcher, get_job_dispatcher, reset_job_dispatcher
from briefcast.services.job_store import JobStoreRegistry, get_job_store_registry, reset_job_store_registry
from briefcast.services.pipeline import PipelineServices


AUDIO_URL = 'https://cdn.example/audio.mp3'


@pytest.fixture
def test_db_url(tmp_path):
    """Generate a per-test database URL."""
    return f'sqlite+aiosqlite:///{tmp_path / "test.db"}'


@pytest_asyncio.fixture
async def test_engine(test_db_url):
    """Create a test database engine."""
    engine = create_async_engine(test_db_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def test_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def registry(session_factory) -> JobStoreRegistry:
    return JobStoreRegistry(session_factory)


@pytest.fixture
def store(registry):
    return registry.get('user-1')


@pytest.fixture
def content_records() -> List[ContentRecord]:
    return [
        ContentRecord(id='119-hr-1', bill_type='hr', bill_number='1', title='Lower Costs Act', sponsor_name='Rep. A'),
        ContentRecord(id='119-s-2', bill_type='s', bill_number='2', title='Clean Water Act', sponsor_name='Sen. B'),
    ]


@pytest.fixture
def dialogue_lines() -> List[DialogueLine]:
    speakers = ['sarah', 'james', 'sarah', 'james', 'sarah']
    return [DialogueLine(speaker=s, text=f'Line {i}') for i, s in enumerate(speakers, start=1)]


@pytest.fixture
def services(content_records, dialogue_lines) -> PipelineServices:
    """Pipeline collaborators mocked to succeed."""
    content_source = AsyncMock()
    content_source.fetch.return_value = content_records

    script_generator = AsyncMock()
    script_generator.generate.return_value = dialogue_lines

    audio_synthesizer = AsyncMock()
    audio_synthesizer.synthesize.return_value = b'\x00' * 1000

    object_storage = AsyncMock()
    object_storage.upload.return_value = AUDIO_URL

    return PipelineServices(
        content_source=content_source,
        script_generator=script_generator,
        audio_synthesizer=audio_synthesizer,
        object_storage=object_storage,
        metadata_repository=AsyncMock(),
        notifier=AsyncMock(),
    )


@pytest.fixture
def sleeps() -> List[float]:
    """Delays requested by the dispatcher's retry scheduling."""
    return []


@pytest.fixture
def dispatcher(registry, services, sleeps) -> JobDispatcher:
    """Dispatcher whose retry backoff returns immediately."""
    async def fake_sleep(delay):
        sleeps.append(delay)

    return JobDispatcher(registry=registry, services=services, sleep=fake_sleep)


@pytest_asyncio.fixture
async def client(dispatcher, registry):
    """Create a test client with mocked dependencies."""
    # Reset singletons
    reset_job_dispatcher()
    reset_job_store_registry()

    # Import app after resetting singletons
    from server import app

    # Override dependencies
    app.dependency_overrides[get_job_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_job_store_registry] = lambda: registry

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()
    reset_job_dispatcher()
    reset_job_store_registry()
