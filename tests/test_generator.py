"""Tests for FactGenerator."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from moviefacts.errors import UpstreamFailure
from moviefacts.services.generator import (
    EMPTY_FACT,
    MAX_TOKENS,
    SYSTEM_PROMPT,
    TEMPERATURE,
    FactGenerator,
)


def make_client(content: str | None = "A fact.") -> MagicMock:
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = content

    mock_openai = MagicMock()
    mock_openai.chat.completions.create = AsyncMock(return_value=mock_response)
    return mock_openai


class TestFactGenerator:
    """Tests for the OpenAI wrapper."""

    def test_default_model(self) -> None:
        assert FactGenerator(MagicMock()).model == "gpt-3.5-turbo"

    def test_without_api_key_is_not_configured(self) -> None:
        generator = FactGenerator.from_api_key("")

        assert generator.configured is False

    @pytest.mark.asyncio
    async def test_sends_prompt_and_limits(self) -> None:
        """Should send the system prompt, the exact title, a token cap and a temperature."""
        mock_openai = make_client("Ridley Scott cast Sigourney Weaver late.")
        generator = FactGenerator(mock_openai, model="test-model")

        result = await generator.generate("Alien")

        assert result == "Ridley Scott cast Sigourney Weaver late."
        call_kwargs = mock_openai.chat.completions.create.call_args.kwargs
        assert call_kwargs["model"] == "test-model"
        assert call_kwargs["max_tokens"] == MAX_TOKENS
        assert call_kwargs["temperature"] == TEMPERATURE > 0
        messages = call_kwargs["messages"]
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert messages[1]["role"] == "user"
        assert '"Alien"' in messages[1]["content"]

    @pytest.mark.asyncio
    async def test_empty_content(self) -> None:
        generator = FactGenerator(make_client(None))

        assert await generator.generate("Alien") == EMPTY_FACT

    @pytest.mark.asyncio
    async def test_no_choices(self) -> None:
        mock_openai = make_client()
        mock_openai.chat.completions.create.return_value.choices = []

        assert await FactGenerator(mock_openai).generate("Alien") == EMPTY_FACT

    @pytest.mark.asyncio
    async def test_api_error_becomes_upstream_failure(self) -> None:
        mock_openai = MagicMock()
        mock_openai.chat.completions.create = AsyncMock(side_effect=OpenAIError("rate limited"))

        with pytest.raises(UpstreamFailure):
            await FactGenerator(mock_openai).generate("Alien")

    @pytest.mark.asyncio
    async def test_missing_client(self) -> None:
        with pytest.raises(UpstreamFailure):
            await FactGenerator(None).generate("Alien")

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        mock_openai = MagicMock()
        mock_openai.close = AsyncMock()

        await FactGenerator(mock_openai).close()

        mock_openai.close.assert_awaited_once()
