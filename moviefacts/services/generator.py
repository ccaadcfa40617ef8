"""
Fact Generator - OpenAI Chat Completions Wrapper

This module is the only place that talks to the text generation provider.
FactService depends on FactGenerator.generate(), so tests can swap in a
fake without patching the OpenAI SDK.

The client is created once in the application lifespan (see main.py) and
closed at shutdown.
"""

import logging

from openai import AsyncOpenAI, OpenAIError

from moviefacts.errors import UpstreamFailure


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a movie expert. Generate interesting, lesser-known facts about specific movies. "
    "Keep responses to 2-3 sentences and make them engaging and factual."
)

# Upper bound on the answer length; 150 tokens fits 2-3 sentences comfortably
MAX_TOKENS = 150

# Non-zero so that "force new" requests can produce a different fact
TEMPERATURE = 0.8

EMPTY_FACT = "No fact generated."


def build_prompt(movie_title: str) -> str:
    return f'Tell me an interesting and lesser-known fact about the movie "{movie_title}".'


class FactGenerator:
    """
    Generates movie facts with an AsyncOpenAI client.

    Example:
        from openai import AsyncOpenAI

        generator = FactGenerator(AsyncOpenAI(api_key="..."), model="gpt-3.5-turbo")
        fact = await generator.generate("Alien")

    A generator without a client (no API key configured) raises
    UpstreamFailure on every call instead of failing at startup.
    """

    def __init__(self, client: AsyncOpenAI | None, model: str = "gpt-3.5-turbo") -> None:
        self._client = client
        self._model = model

    @classmethod
    def from_api_key(cls, api_key: str, model: str = "gpt-3.5-turbo") -> "FactGenerator":
        if not api_key:
            logger.warning("OPENAI_API_KEY is not set, movie fact generation is disabled")
            return cls(None, model=model)
        return cls(AsyncOpenAI(api_key=api_key), model=model)

    @property
    def model(self) -> str:
        return self._model

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def generate(self, movie_title: str) -> str:
        """
        Ask the provider for one fact about `movie_title`.

        Returns:
            The generated text, or EMPTY_FACT if the provider sent no content

        Raises:
            UpstreamFailure: Missing credential, API error, timeout or malformed reply
        """
        if self._client is None:
            raise UpstreamFailure("OpenAI API key not configured")

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(movie_title)},
                ],
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI request failed for {movie_title!r}: {e}")
            raise UpstreamFailure() from e

        if not response.choices:
            return EMPTY_FACT
        return response.choices[0].message.content or EMPTY_FACT

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
