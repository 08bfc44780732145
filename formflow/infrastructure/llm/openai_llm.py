from __future__ import annotations

import json
import logging
from typing import Any

from openai import AsyncOpenAI

from formflow.application.exceptions import LLMContractError, LLMUpstreamError
from formflow.application.ports.llm import LLMPort


class OpenAILLM(LLMPort):
    """
    OpenAI-backed adapter implementing LLMPort.

    Contract guarantees:
    - complete_text returns a non-empty, stripped string
    - complete_json returns a dict parsed from a JSON-mode response
    - Raises:
        LLMUpstreamError: networking/provider failures
        LLMContractError: empty response, invalid JSON or a non-object payload
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.2,
        base_url: str | None = None,
        max_tokens: int = 1400,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url or None)
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._logger = logging.getLogger(__name__)

    async def complete_text(self, system_prompt: str, messages: list[dict[str, str]]) -> str:
        return await self._call_text(system_prompt, messages, use_json_mode=False)

    async def complete_json(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        schema: dict[str, Any],
    ) -> dict[str, Any]:
        system_content = (
            f"{system_prompt}\n\n"
            "Return only valid JSON. Do not include markdown or extra text.\n"
            f"The JSON object must follow this JSON Schema:\n{json.dumps(schema, ensure_ascii=False)}"
        )
        text = await self._call_text(system_content, messages, use_json_mode=True)

        data = _parse_json(text)
        if not isinstance(data, dict):
            raise LLMContractError("Expected a JSON object from the model.")
        return data

    async def _call_text(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        use_json_mode: bool,
    ) -> str:
        try:
            kwargs: dict[str, Any] = {
                "model": self._model,
                "messages": [{"role": "system", "content": system_prompt}, *messages],
                "temperature": self._temperature,
                "max_tokens": self._max_tokens,
            }
            if use_json_mode:
                kwargs["response_format"] = {"type": "json_object"}

            resp = await self.client.chat.completions.create(**kwargs)
        except Exception as e:
            self._logger.error("OpenAI call failed", extra={"model": self._model, "error": str(e)})
            raise LLMUpstreamError(f"OpenAI API error: {e}") from e

        content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        if not content:
            raise LLMContractError("LLM returned empty response text.")

        return content


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        snippet = text[:200].replace("\n", " ")
        raise LLMContractError(f"Invalid JSON from model. Snippet: {snippet!r}") from e
