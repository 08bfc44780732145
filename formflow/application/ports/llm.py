from abc import ABC, abstractmethod
from typing import Any


class LLMPort(ABC):
    @abstractmethod
    async def complete_text(self, system_prompt: str, messages: list[dict[str, str]]) -> str:
        """
        Run a chat completion and return the assistant text.

        Args:
            system_prompt: Instructions placed before the conversation
            messages: Prior turns as {"role": "user"|"assistant", "content": str}

        Raises:
            LLMUpstreamError: provider or network failure
            LLMContractError: empty response
        """
        raise NotImplementedError

    @abstractmethod
    async def complete_json(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        schema: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Run a chat completion that must answer with one JSON object shaped by `schema`.

        Raises:
            LLMUpstreamError: provider or network failure
            LLMContractError: empty response, invalid JSON, or not an object
        """
        raise NotImplementedError
