import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from goldmines.api.deps import get_analysis_engine, get_gateway
from goldmines.db.gateway import PersistenceGateway
from goldmines.ingest.analysis import AnalysisEngine
from goldmines.ingest.schemas import SourcePostIn
from goldmines.main import app

from tests.factories import fake_llm_client


# ------------------------------------------------------------------
# FIXTURE: factory de posts
# ------------------------------------------------------------------
@pytest.fixture
def make_post():
    counter = {"n": 0}

    def _make_post(**overrides):
        counter["n"] += 1
        data = {
            "external_id": f"post{counter['n']}",
            "title": f"Looking for a better invoicing app #{counter['n']}",
            "body": "Our customers pay late and chasing them takes hours.",
            "feed": "smallbusiness",
            "score": 42,
            "num_comments": 7,
            "permalink": f"/r/smallbusiness/comments/post{counter['n']}/",
            "url": f"https://reddit.com/r/smallbusiness/comments/post{counter['n']}/",
            "created_utc": 1700000000.0,
            "author": "founder",
        }
        data.update(overrides)
        return SourcePostIn(**data)

    return _make_post


# ------------------------------------------------------------------
# FIXTURE: base de datos limpia por test (SQLite temporal)
# ------------------------------------------------------------------
@pytest_asyncio.fixture
async def gateway(tmp_path):
    gw = PersistenceGateway(f"sqlite+aiosqlite:///{tmp_path / 'goldmines.db'}", create_schema=True)
    await gw.open()
    yield gw
    await gw.close()


@pytest.fixture
def llm_client():
    return fake_llm_client()


@pytest.fixture
def engine(llm_client):
    return AnalysisEngine(client=llm_client, timeout=5)


@pytest_asyncio.fixture
async def client(gateway, engine):
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_analysis_engine] = lambda: engine

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http

    app.dependency_overrides.pop(get_gateway, None)
    app.dependency_overrides.pop(get_analysis_engine, None)
