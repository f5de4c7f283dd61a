# tests/test_marketing.py
import json

import pytest
from sqlmodel import select

from goldmines.core.exceptions import ConflictError, NotFoundError, ValidationError
from goldmines.db.models import MarketingIdea, SourcePost
from goldmines.ingest.analysis import PRE_FILTER_PREFIX, AnalysisEngine
from goldmines.ingest.marketing import MarketingIdeaGenerator

from tests.factories import fake_llm_client, marketing_payload, screen_verdict


class StaticSource:
    def __init__(self, posts):
        self.posts = posts
        self.calls = []

    async def fetch(self, feeds=None, limit_per_feed=10):
        self.calls.append((feeds, limit_per_feed))
        return list(self.posts)


def marketing_responder(rejected=()):
    def responder(prompt):
        if prompt.startswith(PRE_FILTER_PREFIX):
            return screen_verdict(not any(word in prompt for word in rejected))
        return json.dumps(marketing_payload())

    return responder


def build_generator(posts, gateway, responder=None, feeds=("marketing", "GrowthHacking", "socialmedia")):
    return MarketingIdeaGenerator(
        source=StaticSource(posts),
        analyzer=AnalysisEngine(client=fake_llm_client(responder or marketing_responder())),
        store=gateway,
        feeds=list(feeds),
    )


async def count(gateway, model):
    async with gateway.session() as session:
        result = await session.execute(select(model))
        return len(result.scalars().all())


# ------------------------------------------------------------------
# MarketingIdeaGenerator
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_run_saves_first_matching_post(gateway, make_post):
    posts = [
        make_post(feed="marketing", title="My cat walked across the keyboard"),
        make_post(feed="GrowthHacking", external_id="tactic1", title="Cold DMs that actually convert"),
        make_post(feed="socialmedia", title="Another tactic worth trying out"),
    ]
    generator = build_generator(posts, gateway, marketing_responder(rejected=("cat walked",)))

    idea = await generator.run(limit=4)

    assert idea.marketing_idea_name == "Founder-led LinkedIn teardown series"
    assert generator.source.calls == [(["marketing", "GrowthHacking", "socialmedia"], 2)]
    async with gateway.session() as session:
        source = await session.get(SourcePost, idea.source_post_id)
    assert source.external_id == "tactic1"
    assert await count(gateway, MarketingIdea) == 1


@pytest.mark.asyncio
async def test_run_truncates_fetched_posts_to_limit(gateway, make_post):
    posts = [make_post(title=f"Marketing tactic number {i}") for i in range(5)]
    screened = []

    def responder(prompt):
        if prompt.startswith(PRE_FILTER_PREFIX):
            screened.append(prompt)
            return screen_verdict(True)
        return json.dumps(marketing_payload())

    await build_generator(posts, gateway, responder).run(limit=2)

    assert len(screened) == 2


@pytest.mark.asyncio
async def test_run_without_posts_is_not_found(gateway):
    with pytest.raises(NotFoundError) as exc:
        await build_generator([], gateway).run()

    assert exc.value.message == "No posts found in marketing subreddits"


@pytest.mark.asyncio
async def test_run_without_matches_is_not_found(gateway, make_post):
    generator = build_generator([make_post(title="Weekend hiking photos dump")], gateway, marketing_responder(rejected=("hiking",)))

    with pytest.raises(NotFoundError) as exc:
        await generator.run()

    assert exc.value.message == "No marketing ideas found in marketing subreddits"
    assert await count(gateway, SourcePost) == 0


@pytest.mark.asyncio
async def test_run_rejects_short_name_before_saving(gateway, make_post):
    def responder(prompt):
        if prompt.startswith(PRE_FILTER_PREFIX):
            return screen_verdict(True)
        return json.dumps(marketing_payload(marketing_idea_name="SEO"))

    with pytest.raises(ValidationError):
        await build_generator([make_post()], gateway, responder).run()

    assert await count(gateway, SourcePost) == 0


@pytest.mark.asyncio
async def test_same_post_twice_is_conflict(gateway, make_post):
    post = make_post(title="Newsletter swaps with adjacent products")

    await build_generator([post], gateway).run()
    with pytest.raises(ConflictError):
        await build_generator([post], gateway).run()

    assert await count(gateway, MarketingIdea) == 1


@pytest.mark.asyncio
async def test_run_requires_feeds(gateway, make_post):
    generator = build_generator([make_post()], gateway, feeds=())
    generator.feeds = []

    with pytest.raises(ValidationError):
        await generator.run()
