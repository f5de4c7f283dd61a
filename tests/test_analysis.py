# tests/test_analysis.py
import asyncio
import json
from types import SimpleNamespace

import httpx
import openai
import pytest
from tenacity import wait_none

from goldmines.core.exceptions import AnalysisServiceError, ValidationError
from goldmines.ingest.analysis import (
    MARKETING_SYSTEM_PROMPT,
    MAX_BODY_CHARS,
    PRE_FILTER_PROMPTS,
    AnalysisEngine,
    build_prompt,
    parse_draft,
    parse_marketing_draft,
    parse_screen_verdict,
    validate_draft,
    validate_marketing_draft,
)
from goldmines.ingest.schemas import IdeaDraft, MarketingDraft

from tests.factories import fake_llm_client, idea_payload, marketing_payload, screen_verdict


# ------------------------------------------------------------------
# parse_draft
# ------------------------------------------------------------------
def test_prose_response_is_analysis_error():
    with pytest.raises(AnalysisServiceError):
        parse_draft("Sure! Here is a great business idea for you: an app for dogs.")


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_empty_response_is_analysis_error(raw):
    with pytest.raises(AnalysisServiceError):
        parse_draft(raw)


def test_json_array_is_analysis_error():
    with pytest.raises(AnalysisServiceError):
        parse_draft(json.dumps([idea_payload()]))


def test_code_fences_are_stripped():
    raw = "```json\n" + json.dumps(idea_payload()) + "\n```"

    draft = parse_draft(raw)

    assert draft.business_idea_name == "Invoice Chaser for Agencies"
    assert draft.target_customers == ["Small agencies", "Freelancers"]


def test_string_fields_coerced_to_lists_and_niche_normalized():
    draft = parse_draft(json.dumps(idea_payload(market_size="$500M", niche="a case study of sorts")))

    assert draft.market_size == ["$500M"]
    assert draft.niche == "Case Study"


def test_unknown_niche_defaults_to_business_idea():
    assert parse_draft(json.dumps(idea_payload(niche="Lifestyle"))).niche == "Business Idea"


def test_full_analysis_composed_from_story_when_missing():
    draft = parse_draft(json.dumps(idea_payload(full_analysis="")))

    assert draft.problem_story in draft.full_analysis
    assert draft.solution_vision in draft.full_analysis


# ------------------------------------------------------------------
# validate_draft (límites de longitud)
# ------------------------------------------------------------------
def test_idea_name_length_boundary():
    with pytest.raises(ValidationError) as exc:
        validate_draft(IdeaDraft(**idea_payload(business_idea_name="Abcd")))
    assert "business_idea_name" in exc.value.message

    assert validate_draft(IdeaDraft(**idea_payload(business_idea_name="Abcde")))


def test_full_analysis_length_boundary():
    with pytest.raises(ValidationError) as exc:
        validate_draft(IdeaDraft(**idea_payload(full_analysis="x" * 49)))
    assert "full_analysis" in exc.value.message

    assert validate_draft(IdeaDraft(**idea_payload(full_analysis="x" * 50)))


def test_full_analysis_is_checked_before_name():
    draft = IdeaDraft(**idea_payload(business_idea_name="Abc", full_analysis="short"))

    with pytest.raises(ValidationError) as exc:
        validate_draft(draft)
    assert "full_analysis" in exc.value.message


def test_prompt_truncates_long_body(make_post):
    prompt = build_prompt(make_post(body="a" * (MAX_BODY_CHARS + 100)))

    assert "(truncated)" in prompt
    assert "a" * (MAX_BODY_CHARS + 1) not in prompt


# ------------------------------------------------------------------
# AnalysisEngine
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_analyze_one_attaches_source(make_post):
    post = make_post()
    client = fake_llm_client()
    engine = AnalysisEngine(client=client)

    draft = await engine.analyze_one(post)

    assert draft.source == post
    call = client.chat.completions.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    assert post.title in call["messages"][-1]["content"]


@pytest.mark.asyncio
async def test_batch_continues_after_failures(make_post):
    posts = [make_post(title="Good one about a startup"), make_post(title="Prose reply please"), make_post(title="Broken client call")]

    def responder(prompt):
        if "Prose reply" in prompt:
            return "I think this is a wonderful idea."
        if "Broken client" in prompt:
            raise RuntimeError("connection reset")
        return json.dumps(idea_payload())

    drafts = await AnalysisEngine(client=fake_llm_client(responder)).analyze(posts)

    assert len(drafts) == 1
    assert drafts[0].source == posts[0]


@pytest.mark.asyncio
async def test_missing_client_raises(make_post):
    engine = AnalysisEngine(client=fake_llm_client())
    engine.client = None

    with pytest.raises(AnalysisServiceError) as exc:
        await engine.analyze_one(make_post())
    assert "API key" in exc.value.message


@pytest.mark.asyncio
async def test_slow_model_times_out(make_post):
    async def slow_create(**kwargs):
        await asyncio.sleep(1)

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=slow_create)))
    engine = AnalysisEngine(client=client, timeout=0.01)

    with pytest.raises(AnalysisServiceError) as exc:
        await engine.analyze_one(make_post())
    assert exc.value.message == "Analysis service timed out"


@pytest.mark.asyncio
async def test_transient_errors_are_retried(make_post, monkeypatch):
    monkeypatch.setattr(AnalysisEngine._complete.retry, "wait", wait_none())
    attempts = {"n": 0}

    def responder(prompt):
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
        return json.dumps(idea_payload())

    draft = await AnalysisEngine(client=fake_llm_client(responder)).analyze_one(make_post())

    assert attempts["n"] == 2
    assert draft.business_idea_name == "Invoice Chaser for Agencies"


# ------------------------------------------------------------------
# Pre-filtro
# ------------------------------------------------------------------
@pytest.mark.parametrize("raw", ['{"is_match": "yes"}', '{"reason": "no verdict"}'])
def test_screen_verdict_requires_boolean(raw):
    with pytest.raises(AnalysisServiceError):
        parse_screen_verdict(raw)


@pytest.mark.asyncio
async def test_pre_filter_uses_kind_prompt(make_post):
    client = fake_llm_client(lambda prompt: screen_verdict(False))
    engine = AnalysisEngine(client=client)

    assert await engine.pre_filter(make_post(), "marketing") is False
    assert client.chat.completions.calls[0]["messages"][0]["content"] == PRE_FILTER_PROMPTS["marketing"]


@pytest.mark.asyncio
async def test_pre_filter_unknown_kind(make_post):
    with pytest.raises(ValidationError):
        await AnalysisEngine(client=fake_llm_client()).pre_filter(make_post(), "recipes")


@pytest.mark.asyncio
async def test_screen_drops_rejected_and_keeps_on_failure(make_post):
    posts = [make_post(title="A real startup idea"), make_post(title="Just a meme today"), make_post(title="Classifier blew up")]

    def responder(prompt):
        if "meme" in prompt:
            return screen_verdict(False)
        if "blew up" in prompt:
            raise RuntimeError("connection reset")
        return screen_verdict(True)

    kept = await AnalysisEngine(client=fake_llm_client(responder)).screen(posts)

    assert kept == [posts[0], posts[2]]


# ------------------------------------------------------------------
# Ideas de marketing
# ------------------------------------------------------------------
def test_marketing_draft_normalizes_impact_and_defaults():
    draft = parse_marketing_draft(
        json.dumps(marketing_payload(potential_impact="high if done weekly", channel="LinkedIn", category=None, full_analysis=""))
    )

    assert draft.potential_impact == "High"
    assert draft.channel == ["LinkedIn"]
    assert draft.category == "Marketing"
    assert draft.full_analysis == draft.idea_description


def test_marketing_draft_unknown_impact_is_medium():
    assert parse_marketing_draft(json.dumps(marketing_payload(potential_impact="huge"))).potential_impact == "Medium"


def test_marketing_name_length_boundary():
    with pytest.raises(ValidationError) as exc:
        validate_marketing_draft(MarketingDraft(**marketing_payload(marketing_idea_name="Abcd")))
    assert "marketing_idea_name" in exc.value.message

    assert validate_marketing_draft(MarketingDraft(**marketing_payload(marketing_idea_name="Abcde")))


@pytest.mark.asyncio
async def test_analyze_marketing_one_attaches_source(make_post):
    post = make_post(feed="GrowthHacking")
    client = fake_llm_client(lambda prompt: json.dumps(marketing_payload()))

    draft = await AnalysisEngine(client=client).analyze_marketing_one(post)

    assert draft.source == post
    assert draft.marketing_idea_name == "Founder-led LinkedIn teardown series"
    assert client.chat.completions.calls[0]["messages"][0]["content"] == MARKETING_SYSTEM_PROMPT
