"""
Restructuring advice from a language model.

Advisory only: the advisor reads an AnalysisResult and returns text. It never
produces rules and never touches the document.
"""

import asyncio
import re
from typing import List, Tuple

import aiohttp

from .analysis.analyzer import AnalysisResult
from .config import config
from .diagnostics import get_logger
from .exceptions import AdviceUnavailable
from .llm import from_config

logger = get_logger(__name__)

SUGGEST_SYSTEM_PROMPT = """You are an expert web designer and UX specialist.
You MUST provide specific, actionable suggestions for improving web pages.
Your response should be in English and use bullet points.
Focus on readability, accessibility, and user experience."""

PLAN_SYSTEM_PROMPT = """You are an expert at web page restructuring and optimization.
You MUST provide a detailed, step-by-step restructuring plan.
Your response should be in English and use numbered steps.
Focus on improving readability, removing clutter, and enhancing user experience."""

MAX_PROMPT_HEADINGS = 10

_BULLET_RE = re.compile(r"^\s*[-*•]\s+(.*\S)\s*$")


def _statistics(analysis: AnalysisResult) -> str:
    return "\n".join([
        f"- Total elements: {analysis.element_count}",
        f"- Images: {analysis.image_count}",
        f"- Links: {analysis.link_count}",
        f"- Forms: {analysis.form_count}",
        f"- Reading time: {analysis.reading_time_minutes} minutes",
        f"- Sections: {analysis.section_count}",
    ])


def build_prompt(analysis: AnalysisResult) -> Tuple[str, str]:
    """(system, prompt) asking for 5-7 bullet suggestions."""
    headings = ", ".join(
        f"H{h['level']}: {h['text']}" for h in analysis.headings[:MAX_PROMPT_HEADINGS]
    ) or "none"
    lines = [
        "Analyze this web page and provide restructuring suggestions:",
        "",
        f"Page Title: {analysis.title}",
        f"URL: {analysis.url}",
        "",
        "Statistics:",
        _statistics(analysis),
        "",
        f"Headings: {headings}",
    ]
    if analysis.suggestions:
        lines += ["", "Detected issues:"]
        lines += [f"- {s.message}" for s in analysis.suggestions]
    lines += ["", "Provide 5-7 specific suggestions for improving this page."]
    return SUGGEST_SYSTEM_PROMPT, "\n".join(lines)


def build_plan_prompt(analysis: AnalysisResult) -> Tuple[str, str]:
    prompt = "\n".join([
        "Create a restructuring plan for this page:",
        "",
        f"Title: {analysis.title}",
        f"URL: {analysis.url}",
        "",
        "Analysis:",
        _statistics(analysis),
        "",
        "Provide a step-by-step plan to optimize this page.",
    ])
    return PLAN_SYSTEM_PROMPT, prompt


def parse_bullets(text: str) -> List[str]:
    """Keep only bullet lines, without their markers."""
    bullets = []
    for line in (text or "").splitlines():
        m = _BULLET_RE.match(line)
        if m:
            bullets.append(m.group(1))
    return bullets


class RestructuringAdvisor:
    def __init__(self, llm=None, settings=None):
        self.settings = settings or config
        self.llm = llm or from_config(self.settings)

    async def _ask(self, system: str, prompt: str) -> str:
        try:
            result = await self.llm.ainvoke(prompt, system=system)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Ollama request failed: {e!r}")
            raise AdviceUnavailable(f"Ollama request failed: {e!r}") from e
        return str(result.get("text", "")) if isinstance(result, dict) else str(result)

    async def suggest(self, analysis: AnalysisResult) -> List[str]:
        text = await self._ask(*build_prompt(analysis))
        bullets = parse_bullets(text)
        logger.debug(f"Advisor returned {len(bullets)} suggestion(s) for {analysis.url}")
        return bullets

    async def plan(self, analysis: AnalysisResult) -> str:
        return (await self._ask(*build_plan_prompt(analysis))).strip()
