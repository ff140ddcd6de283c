import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pagecraft_core.advice import (
    MAX_PROMPT_HEADINGS,
    PLAN_SYSTEM_PROMPT,
    SUGGEST_SYSTEM_PROMPT,
    RestructuringAdvisor,
    build_plan_prompt,
    build_prompt,
    parse_bullets,
)
from pagecraft_core.analysis import PageAnalyzer
from pagecraft_core.exceptions import AdviceUnavailable
from pagecraft_core.llm import SimpleOllama


class FakeLLM:
    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def ainvoke(self, prompt, system=None):
        self.calls.append((system, prompt))
        if self.error is not None:
            raise self.error
        return {"text": self.text}


@pytest.fixture
def analysis(article_bridge):
    return asyncio.run(PageAnalyzer().analyze_page(article_bridge))


def test_prompt_contains_page_facts(analysis):
    system, prompt = build_prompt(analysis)
    assert system == SUGGEST_SYSTEM_PROMPT
    assert "Page Title: Sample Article" in prompt
    assert f"- Total elements: {analysis.element_count}" in prompt
    assert "H1: " in prompt
    assert "5-7" in prompt


def test_prompt_lists_detected_issues(make_bridge):
    bridge = make_bridge('<img src="a.png"><p>x</p>')
    result = asyncio.run(PageAnalyzer().analyze_page(bridge))
    _, prompt = build_prompt(result)
    assert "Detected issues:" in prompt
    assert "Headings: none" in prompt


def test_prompt_caps_headings(make_bridge):
    bridge = make_bridge("".join(f"<h2>Part {i}</h2>" for i in range(15)))
    result = asyncio.run(PageAnalyzer().analyze_page(bridge))
    _, prompt = build_prompt(result)
    assert prompt.count("H2: ") == MAX_PROMPT_HEADINGS


def test_plan_prompt(analysis):
    system, prompt = build_plan_prompt(analysis)
    assert system == PLAN_SYSTEM_PROMPT
    assert "step-by-step" in prompt


def test_parse_bullets():
    text = "Here are ideas:\n- Shorten the nav\n* Add alt text \n• Bigger font\n1. numbered\n-no space\n"
    assert parse_bullets(text) == ["Shorten the nav", "Add alt text", "Bigger font"]
    assert parse_bullets("") == []


def test_suggest_returns_bullets(analysis):
    llm = FakeLLM("- one\n- two\nnoise")
    assert asyncio.run(RestructuringAdvisor(llm=llm).suggest(analysis)) == ["one", "two"]
    assert llm.calls[0][0] == SUGGEST_SYSTEM_PROMPT


def test_plan_returns_text(analysis):
    llm = FakeLLM("\n1. Remove ads\n2. Enlarge text\n")
    assert asyncio.run(RestructuringAdvisor(llm=llm).plan(analysis)) == "1. Remove ads\n2. Enlarge text"


@pytest.mark.parametrize("error", [
    aiohttp.ClientConnectionError("Connection refused"),
    asyncio.TimeoutError(),
])
def test_unreachable_endpoint_is_advice_unavailable(analysis, error):
    advisor = RestructuringAdvisor(llm=FakeLLM(error=error))
    with pytest.raises(AdviceUnavailable):
        asyncio.run(advisor.suggest(analysis))


@pytest.mark.asyncio
async def test_simple_ollama_posts_generate_request():
    seen = {}

    async def generate(request):
        seen.update(await request.json())
        return web.json_response({"response": "- tidy up"})

    app = web.Application()
    app.router.add_post("/api/generate", generate)
    async with TestServer(app) as server:
        client = SimpleOllama(str(server.make_url("/")), "tiny", num_predict=32, temperature=0.1, timeout=5)
        result = await client.ainvoke("Analyze", system="Be brief")

    assert result == {"text": "- tidy up"}
    assert seen["model"] == "tiny"
    assert seen["system"] == "Be brief"
    assert seen["stream"] is False
    assert seen["options"] == {"num_predict": 32, "temperature": 0.1}


@pytest.mark.asyncio
async def test_simple_ollama_http_error_maps_to_advice_unavailable(article_bridge):
    analysis = await PageAnalyzer().analyze_page(article_bridge)

    async def generate(request):
        return web.Response(status=500, text="model not loaded")

    app = web.Application()
    app.router.add_post("/api/generate", generate)
    async with TestServer(app) as server:
        llm = SimpleOllama(str(server.make_url("/")), "tiny", num_predict=32, temperature=0.1, timeout=5)
        with pytest.raises(AdviceUnavailable):
            await RestructuringAdvisor(llm=llm).suggest(analysis)
