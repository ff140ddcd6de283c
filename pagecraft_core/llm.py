#!/usr/bin/env python3
import aiohttp
from typing import Optional


class SimpleOllama:
    """Minimal async client for Ollama's /api/generate endpoint"""
    def __init__(self, base_url: str, model: str, num_predict: int, temperature: float, timeout: int = 120):
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout
        self.options = {
            "num_predict": num_predict,
            "temperature": temperature,
        }

    async def ainvoke(self, prompt: str, system: Optional[str] = None):
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": self.options,
        }
        if system:
            payload["system"] = system
        timeout_obj = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout_obj) as session:
            async with session.post(f"{self.base_url}/api/generate", json=payload) as resp:
                resp.raise_for_status()
                data = await resp.json()
        text = data.get("response", "") if isinstance(data, dict) else str(data)
        return {"text": text}


def from_config(settings) -> SimpleOllama:
    return SimpleOllama(
        base_url=settings.ollama_host,
        model=settings.ollama_model,
        num_predict=settings.num_predict,
        temperature=settings.temperature,
        timeout=settings.llm_timeout,
    )
