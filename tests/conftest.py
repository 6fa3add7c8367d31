"""
Shared test fixtures for Content Engine tests.

Provides:
- Test database (SQLite in-memory)
- Test client (httpx AsyncClient over ASGITransport)
- Authentication headers (with JWT token)
- Scene spec factory
- Render pipeline wired to fake providers, a mocked code model and a
  scripted render worker
"""

import os
import tempfile
import uuid
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-purposes-only-32chars"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PUBLIC_BASE_URL"] = "https://engine.example.com"
os.environ["RENDER_WORKER_URL"] = "http://render-worker.test"

# Create a temporary directory for test storage
_test_storage_dir = tempfile.mkdtemp(prefix="content_engine_test_")
os.environ["STORAGE_PATH"] = _test_storage_dir

from content_engine.core.config import RenderPipelineConfig
from content_engine.core.database import Base
from content_engine.core.security import create_access_token
from content_engine.main import app
from content_engine.models.scene_spec import SceneSpec, SpecStatus
from content_engine.services.assets import AssetPreparer
from content_engine.services.codegen import CodeSynthesizer
from content_engine.services.pipeline import RenderPipeline
from content_engine.services.poller import CompletionPoller
from content_engine.services.render_worker import RenderWorkerClient
from content_engine.services.store import RenderStore
from tests.utils.fakes import (
    VALID_COMPOSITION,
    FakeFootageProvider,
    FakeSpeechProvider,
    RenderWorkerStub,
)


# =============================================================================
# Test Database Configuration
# =============================================================================

# Create test engine with in-memory SQLite
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)

TestAsyncSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

TEST_USER_ID = "user-0001"
OTHER_USER_ID = "user-0002"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide an async database session for testing.

    Creates all tables before the test and drops them after.
    Each test gets a fresh database.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestAsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    """Override database dependency for testing."""
    async with TestAsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@pytest.fixture
def fetch() -> Callable[..., Any]:
    """Read a record through a fresh session (bypasses any identity map)."""

    async def _fetch(model: Any, record_id: str) -> Any:
        async with TestAsyncSessionLocal() as session:
            return await session.get(model, record_id)

    return _fetch


# =============================================================================
# Scene Spec Fixtures
# =============================================================================


def make_scenes(count: int = 2) -> List[Dict[str, Any]]:
    return [
        {
            "order": i + 1,
            "voiceover_text": f"Narration for scene {i + 1}.",
            "visual_intent": f"ocean waves at sunset {i + 1}",
            "duration_hint": None,
            "style_hints": None,
        }
        for i in range(count)
    ]


@pytest.fixture
def scene_spec_factory(test_db: AsyncSession) -> Callable[..., Any]:
    """
    Insert SceneSpecs directly into the test database.

    Usage:
        spec = await scene_spec_factory(target_duration=300, status="approved")
    """

    async def _create(
        user_id: str = TEST_USER_ID,
        title: str = "The Deep Ocean",
        target_duration: int = 180,
        scenes: Optional[List[Dict[str, Any]]] = None,
        status: str = SpecStatus.APPROVED.value,
    ) -> SceneSpec:
        spec = SceneSpec(
            user_id=user_id,
            title=title,
            description="A short documentary about the deep ocean",
            tags=["ocean", "science"],
            target_duration=target_duration,
            scenes=make_scenes() if scenes is None else scenes,
            status=status,
        )
        test_db.add(spec)
        await test_db.commit()
        return spec

    return _create


# =============================================================================
# Render Pipeline Fixtures
# =============================================================================


@pytest.fixture
def pipeline_config() -> RenderPipelineConfig:
    """Pipeline configuration with instant polling."""
    return RenderPipelineConfig(
        worker_base_url="http://render-worker.test",
        model_credential="test-credential",
        poll_interval_ms=0,
        max_poll_attempts=3,
    )


@pytest.fixture
def render_worker() -> RenderWorkerStub:
    return RenderWorkerStub(
        status_script=[
            {"status": "rendering", "progress": 50},
            {"status": "complete", "resultUrl": "https://cdn.example.com/renders/final.mp4"},
        ]
    )


@pytest.fixture
def speech_provider() -> FakeSpeechProvider:
    return FakeSpeechProvider()


@pytest.fixture
def footage_provider() -> FakeFootageProvider:
    return FakeFootageProvider()


@pytest.fixture
def code_model() -> AsyncMock:
    """Mocked generative code model returning a valid composition."""
    model = AsyncMock()
    model.complete = AsyncMock(return_value=VALID_COMPOSITION)
    return model


@pytest.fixture
def render_store() -> RenderStore:
    return RenderStore(TestAsyncSessionLocal)


@pytest.fixture
def build_pipeline(
    pipeline_config: RenderPipelineConfig,
    render_worker: RenderWorkerStub,
    speech_provider: FakeSpeechProvider,
    footage_provider: FakeFootageProvider,
    code_model: AsyncMock,
    render_store: RenderStore,
) -> Callable[..., RenderPipeline]:
    """
    Factory for RenderPipelines wired to the test doubles.

    Keyword overrides replace individual collaborators.
    """

    def _build(**overrides: Any) -> RenderPipeline:
        config = overrides.get("config", pipeline_config)
        worker = RenderWorkerClient(config.worker_base_url, transport=render_worker.transport)
        poller = CompletionPoller(
            worker,
            render_store,
            poll_interval_ms=config.poll_interval_ms,
            max_attempts=config.max_poll_attempts,
        )
        preparer = overrides.get(
            "asset_preparer",
            AssetPreparer(speech=speech_provider, footage=footage_provider),
        )
        model = overrides["code_model"] if "code_model" in overrides else code_model
        return RenderPipeline(
            config=config,
            store=render_store,
            asset_preparer=preparer,
            synthesizer=CodeSynthesizer(model),
            worker=worker,
            poller=poller,
        )

    return _build


@pytest_asyncio.fixture
async def render_pipeline(
    test_db: AsyncSession,
    build_pipeline: Callable[..., RenderPipeline],
) -> AsyncGenerator[RenderPipeline, None]:
    """Pipeline over the test database; polling tasks are cancelled on teardown."""
    pipeline = build_pipeline()
    yield pipeline
    await pipeline.poller.shutdown()


# =============================================================================
# Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_client(
    test_db: AsyncSession,
    render_pipeline: RenderPipeline,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide an async HTTP client for testing the FastAPI application.

    Overrides the database and render pipeline dependencies.
    """
    from content_engine.api.deps import get_db, get_render_pipeline
    from content_engine.core.database import get_async_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_async_session] = override_get_db
    app.dependency_overrides[get_render_pipeline] = lambda: render_pipeline

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# Auth Fixtures
# =============================================================================


@pytest.fixture
def auth_headers() -> dict:
    """Provide authentication headers for the test user."""
    return {"Authorization": f"Bearer {create_access_token(TEST_USER_ID)}"}


@pytest.fixture
def second_auth_headers() -> dict:
    """Provide authentication headers for a second user."""
    return {"Authorization": f"Bearer {create_access_token(OTHER_USER_ID)}"}


@pytest.fixture
def scene_spec_payload() -> dict:
    """Valid SceneSpec creation payload."""
    return {
        "title": f"Ocean Facts {uuid.uuid4().hex[:8]}",
        "description": "Five facts about the ocean",
        "tags": ["ocean"],
        "target_duration": 180,
        "scenes": make_scenes(3),
    }
