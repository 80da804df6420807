# Role: Minimal wrapper around the Gemini API. Centralizes model name, temperature and response checks,
# so the gateway calls one of two methods: generate_text(prompt) or generate_json(prompt, schema).

from __future__ import annotations

import os
from typing import Any, Dict, Optional, Type

from google import genai
from pydantic import BaseModel

import trip_assistant.config as config


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> None:
        # Key lines:
        # - Reads secrets from env (no secrets in code).
        # - Model and temperature are configurable for experiments.
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        if not self.api_key:
            raise RuntimeError("Missing GEMINI_API_KEY in environment or .env")

        self.model_name = model or config.GEMINI_MODEL
        self.temperature = config.GEMINI_TEMPERATURE if temperature is None else temperature

        self.client = genai.Client(api_key=self.api_key)

    def generate_text(self, prompt: str) -> str:
        # 1) Validate prompt
        # 2) Call Gemini (single text completion)
        # 3) Validate non-empty response
        return self._generate(prompt, {"temperature": self.temperature})

    def generate_json(self, prompt: str, schema: Type[BaseModel]) -> str:
        # Structured output: the API constrains the response to the schema; content is still unchecked.
        return self._generate(
            prompt,
            {
                "temperature": self.temperature,
                "response_mime_type": "application/json",
                "response_schema": schema,
            },
        )

    def _generate(self, prompt: str, generation_config: Dict[str, Any]) -> str:
        if not prompt or not prompt.strip():
            raise ValueError("Prompt must be non-empty.")

        try:
            resp = self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=generation_config,
            )
        except Exception as e:
            raise RuntimeError(f"Gemini API call failed: {e}") from e

        text = getattr(resp, "text", None)
        if not text:
            feedback = getattr(resp, "prompt_feedback", None)
            block_reason = getattr(feedback, "block_reason", None)
            if block_reason:
                raise RuntimeError(f"Gemini response blocked by safety filters: {block_reason}")
            raise RuntimeError("Gemini returned an empty response.")

        return text.strip()
