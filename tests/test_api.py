# tests/test_api.py
import json
import uuid

import pytest
from pydantic import SecretStr

from goldmines.api.deps import get_marketing_generator, get_pipeline
from goldmines.core.settings import settings
from goldmines.ingest.analysis import PRE_FILTER_PREFIX, AnalysisEngine
from goldmines.ingest.marketing import MarketingIdeaGenerator
from goldmines.ingest.schemas import PipelineReport
from goldmines.main import app

from tests.factories import fake_llm_client, idea_payload, marketing_payload, screen_verdict

USER_ID = str(uuid.uuid4())


async def generate(client, description="An app that reminds clients to pay their invoices"):
    response = await client.post("/api/generate-idea", json={"idea_description": description})
    assert response.status_code == 200, response.text
    return response.json()["business_idea"]


# ------------------------------------------------------------------
# POST /api/generate-idea
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_generate_idea_persists_and_returns_idea(client, llm_client):
    response = await client.post(
        "/api/generate-idea",
        json={"idea_description": "An app that reminds clients to pay their invoices"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Business idea generated and saved successfully"
    assert data["business_idea"]["business_idea_name"] == "Invoice Chaser for Agencies"
    assert data["business_idea"]["analysis_status"] == "completed"

    prompt = llm_client.chat.completions.calls[0]["messages"][-1]["content"]
    assert "reminds clients to pay" in prompt

    listing = (await client.get("/api/business-ideas")).json()
    assert listing["total"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"idea_description": ""}, {"idea_description": "   "}, {}])
async def test_generate_idea_requires_description(client, payload):
    response = await client.post("/api/generate-idea", json=payload)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Business idea description is required"}


@pytest.mark.asyncio
async def test_generate_idea_incomplete_analysis_is_rejected(client, engine):
    engine.client.chat.completions.responder = lambda prompt: json.dumps(idea_payload(business_idea_name="Hm"))

    response = await client.post("/api/generate-idea", json={"idea_description": "Some idea"})

    assert response.status_code == 400
    assert "business_idea_name" in response.json()["message"]
    assert (await client.get("/api/business-ideas")).json()["total"] == 0


@pytest.mark.asyncio
async def test_generate_idea_prose_response_is_server_error(client, engine):
    engine.client.chat.completions.responder = lambda prompt: "What a lovely idea!"

    response = await client.post("/api/generate-idea", json={"idea_description": "Some idea"})

    assert response.status_code == 500
    assert response.json()["success"] is False


# ------------------------------------------------------------------
# GET /api/business-ideas
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_business_idea_detail_and_404(client):
    idea = await generate(client)

    detail = await client.get(f"/api/business-ideas/{idea['id']}")
    assert detail.status_code == 200
    assert detail.json()["target_customers"] == ["Small agencies", "Freelancers"]

    missing = await client.get("/api/business-ideas/9999")
    assert missing.status_code == 404
    assert missing.json()["success"] is False


@pytest.mark.asyncio
async def test_marketing_ideas_empty_listing(client):
    response = await client.get("/api/marketing-ideas")

    assert response.status_code == 200
    assert response.json()["total"] == 0
    assert response.json()["has_more"] is False


# ------------------------------------------------------------------
# POST /api/marketing-ideas (interno)
# ------------------------------------------------------------------
class StaticSource:
    def __init__(self, posts):
        self.posts = posts

    async def fetch(self, feeds=None, limit_per_feed=10):
        return list(self.posts)


def marketing_responder(prompt):
    if prompt.startswith(PRE_FILTER_PREFIX):
        return screen_verdict(True)
    return json.dumps(marketing_payload())


@pytest.fixture
def marketing_posts(gateway, monkeypatch):
    posts = []
    generator = MarketingIdeaGenerator(
        source=StaticSource(posts),
        analyzer=AnalysisEngine(client=fake_llm_client(marketing_responder)),
        store=gateway,
    )
    monkeypatch.setattr(settings, "internal_api_key", SecretStr("s3cret"))
    app.dependency_overrides[get_marketing_generator] = lambda: generator
    yield posts
    app.dependency_overrides.pop(get_marketing_generator, None)


@pytest.mark.asyncio
async def test_create_marketing_idea(client, marketing_posts, make_post):
    marketing_posts.append(make_post(feed="GrowthHacking", title="Partner webinars filled our pipeline"))

    response = await client.post("/api/marketing-ideas", headers={"X-Internal-Key": "s3cret"}, json={"limit": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Marketing idea analyzed and saved successfully"
    assert data["marketing_idea"]["marketing_idea_name"] == "Founder-led LinkedIn teardown series"

    listing = await client.get("/api/marketing-ideas")
    assert listing.json()["total"] == 1


@pytest.mark.asyncio
async def test_create_marketing_idea_requires_internal_key(client, marketing_posts, make_post):
    marketing_posts.append(make_post())

    response = await client.post("/api/marketing-ideas")

    assert response.status_code == 403
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_create_marketing_idea_without_posts_is_404(client, marketing_posts):
    response = await client.post("/api/marketing-ideas", headers={"X-Internal-Key": "s3cret"})

    assert response.status_code == 404
    assert response.json()["message"] == "No posts found in marketing subreddits"


@pytest.mark.asyncio
async def test_create_marketing_idea_duplicate_is_409(client, marketing_posts, make_post):
    marketing_posts.append(make_post(title="Reddit AMAs as a launch channel"))
    headers = {"X-Internal-Key": "s3cret"}

    first = await client.post("/api/marketing-ideas", headers=headers)
    second = await client.post("/api/marketing-ideas", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["message"] == "Duplicate post detected across subreddits"


# ------------------------------------------------------------------
# POST /api/bookmark + GET /api/saved
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_bookmark_toggle_round(client):
    idea = await generate(client)
    body = {"user_id": USER_ID, "item_type": "business", "item_id": idea["id"]}

    added = await client.post("/api/bookmark", json=body)
    assert added.status_code == 200
    assert added.json() == {"success": True, "action": "added", "message": "Bookmark added successfully"}

    saved = (await client.get("/api/saved", params={"user_id": USER_ID})).json()
    assert [item["id"] for item in saved["saved_items"]] == [idea["id"]]

    removed = await client.post("/api/bookmark", json=body)
    assert removed.json()["action"] == "removed"

    saved = (await client.get("/api/saved", params={"user_id": USER_ID})).json()
    assert saved["saved_items"] == []


@pytest.mark.asyncio
async def test_bookmark_invalid_item_type(client):
    response = await client.post(
        "/api/bookmark", json={"user_id": USER_ID, "item_type": "recipe", "item_id": 1}
    )

    assert response.status_code == 400
    message = response.json()["message"]
    assert '"business"' in message and '"marketing"' in message


@pytest.mark.asyncio
async def test_bookmark_missing_item_is_404(client):
    response = await client.post(
        "/api/bookmark", json={"user_id": USER_ID, "item_type": "marketing", "item_id": 4242}
    )

    assert response.status_code == 404
    message = response.json()["message"]
    assert "4242" in message
    assert "marketing_ideas" in message


@pytest.mark.asyncio
async def test_bookmark_invalid_user_id(client):
    response = await client.post(
        "/api/bookmark", json={"user_id": "not-a-uuid", "item_type": "business", "item_id": 1}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid user_id format. Must be a valid UUID."


@pytest.mark.asyncio
async def test_bookmark_missing_fields(client):
    response = await client.post("/api/bookmark", json={"user_id": USER_ID})

    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields: user_id, item_type, item_id"


@pytest.mark.asyncio
async def test_saved_requires_valid_user_id(client):
    assert (await client.get("/api/saved")).status_code == 400
    assert (await client.get("/api/saved", params={"user_id": "123"})).status_code == 400


# ------------------------------------------------------------------
# POST /api/reddit (interno)
# ------------------------------------------------------------------
class FakePipeline:
    def __init__(self):
        self.calls = []

    async def run(self, feeds=None, limit_per_feed=None):
        self.calls.append((feeds, limit_per_feed))
        return PipelineReport(fetched=4, filtered=3, analyzed=2, saved=2, saved_idea_ids=[1, 2])


@pytest.fixture
def fake_pipeline(monkeypatch):
    pipeline = FakePipeline()
    monkeypatch.setattr(settings, "internal_api_key", SecretStr("s3cret"))
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield pipeline
    app.dependency_overrides.pop(get_pipeline, None)


@pytest.mark.asyncio
async def test_ingestion_requires_internal_key(client, fake_pipeline):
    missing = await client.post("/api/reddit")
    wrong = await client.post("/api/reddit", headers={"X-Internal-Key": "nope"})

    assert missing.status_code == 403
    assert wrong.status_code == 403
    assert fake_pipeline.calls == []


@pytest.mark.asyncio
async def test_ingestion_runs_pipeline(client, fake_pipeline):
    response = await client.post(
        "/api/reddit",
        headers={"X-Internal-Key": "s3cret"},
        json={"feeds": ["SaaS"], "limit_per_feed": 3},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["saved"] == 2
    assert data["saved_idea_ids"] == [1, 2]
    assert fake_pipeline.calls == [(["SaaS"], 3)]


# ------------------------------------------------------------------
# POST /api/auth/signup
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_signup_and_duplicate(client):
    body = {"email": "maker@example.com", "password": "longenough", "full_name": "Maker"}

    created = await client.post("/api/auth/signup", json=body)
    assert created.status_code == 200
    user = created.json()["user"]
    assert user["email"] == "maker@example.com"
    assert "password_hash" not in user

    duplicate = await client.post("/api/auth/signup", json=body)
    assert duplicate.status_code == 409
    assert duplicate.json()["success"] is False


@pytest.mark.asyncio
async def test_signup_short_password(client):
    response = await client.post("/api/auth/signup", json={"email": "x@example.com", "password": "123"})

    assert response.status_code == 400


# ------------------------------------------------------------------
# System
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_health_and_ready(client):
    health = await client.get("/health")
    ready = await client.get("/ready")

    assert health.status_code == 200
    assert health.json()["db"] == "up"
    assert ready.json() == {"status": "ready"}
