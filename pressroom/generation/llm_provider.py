"""LLM provider interface and implementations."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from ..errors import ContentGenerationError, ServiceAuthError
from .models import GeneratedContent

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a technology journalist writing for a general audience.
Write an informative, well-structured article grounded in the provided sources.
Use markdown headings and short paragraphs in the body.
Respond with JSON in this format:
{ "title": string, "content": string, "description": string, "summary": string }
- description: one or two sentences for article cards
- summary: a short paragraph summarizing the key points"""


def build_article_prompt(topic: str, context: str) -> str:
    """Build the user prompt for article generation."""
    if not context.strip():
        return f"Write an article about {topic}."

    return f"""Write an article about {topic}.

Base the article on the following sources. Do not invent statistics that are
not supported by them.

{context}"""


def parse_generated_content(raw: Optional[str]) -> GeneratedContent:
    """
    Parse the model's JSON reply.

    A missing summary falls back to the description; any other missing field
    is an error.
    """
    if not raw:
        raise ContentGenerationError("No content received from the language model")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ContentGenerationError(f"Language model returned invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ContentGenerationError("Language model returned an unexpected response shape")

    fields = {}
    for key in ("title", "content", "description"):
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ContentGenerationError(f"Generated article is missing '{key}'")
        fields[key] = value.strip()

    summary = data.get("summary")
    fields["summary"] = summary.strip() if isinstance(summary, str) and summary.strip() else fields["description"]

    return GeneratedContent(**fields)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def generate_article(self, topic: str, context: str) -> GeneratedContent:
        """
        Generate a structured article.

        Args:
            topic: Article topic
            context: Concatenated source text

        Returns:
            Title, body, description and summary
        """
        pass

    @abstractmethod
    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        pass


class OpenAIProvider(LLMProvider):
    """OpenAI implementation of LLM provider."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o",
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model name to use
            base_url: Custom base URL
            temperature: Sampling temperature
            client: Preconfigured client (shared with image/speech calls)
        """
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.temperature = temperature
        self.total_tokens = 0
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self.api_calls = 0

        # Token cost estimates (per 1K tokens)
        self.cost_per_1k_tokens = {
            "gpt-4o": {"input": 0.005, "output": 0.015},
            "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
            "gpt-4": {"input": 0.03, "output": 0.06},
            "gpt-3.5-turbo": {"input": 0.001, "output": 0.002},
        }

    async def generate_article(self, topic: str, context: str) -> GeneratedContent:
        """Generate article using OpenAI."""
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_article_prompt(topic, context)},
        ]

        try:
            self.api_calls += 1
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except openai.AuthenticationError as e:
            logger.error("Language model rejected credentials: %s", e)
            raise ServiceAuthError("content generation", str(e), stage="content") from e
        except openai.OpenAIError as e:
            raise ContentGenerationError(f"Failed to generate article: {e}") from e

        prompt_tokens = completion_tokens = total_tokens = 0
        if response.usage:
            prompt_tokens = response.usage.prompt_tokens
            completion_tokens = response.usage.completion_tokens
            total_tokens = response.usage.total_tokens
            self.total_tokens += total_tokens
            self.prompt_tokens += prompt_tokens
            self.completion_tokens += completion_tokens

        generated = parse_generated_content(response.choices[0].message.content)
        generated.usage = {
            "total_tokens": total_tokens,
            "api_calls": 1,
            "estimated_cost": self._estimate_cost(prompt_tokens, completion_tokens),
            "model": self.model,
        }
        return generated

    def _estimate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        rates = self.cost_per_1k_tokens.get(self.model)
        if not rates:
            return 0.0
        return (prompt_tokens / 1000) * rates["input"] + (completion_tokens / 1000) * rates["output"]

    def get_usage_stats(self) -> Dict:
        """Get usage statistics accumulated over the provider's lifetime."""
        return {
            "total_tokens": self.total_tokens,
            "api_calls": self.api_calls,
            "estimated_cost": self._estimate_cost(self.prompt_tokens, self.completion_tokens),
            "model": self.model,
        }


class MockLLMProvider(LLMProvider):
    """Mock LLM provider for development and testing."""

    def __init__(self) -> None:
        """Initialize mock provider."""
        self.calls = []

    async def generate_article(self, topic: str, context: str) -> GeneratedContent:
        """Mock article generation."""
        self.calls.append(("article", topic, context))

        return GeneratedContent(
            title=f"Understanding {topic.title()}",
            content=(
                f"# Understanding {topic.title()}\n\n"
                f"This article introduces {topic} and why it matters.\n\n"
                "## Key Ideas\n\n"
                "[Mock content based on gathered sources]\n"
            ),
            description=f"An introduction to {topic}.",
            summary=f"A short overview of {topic}, its main ideas and where to learn more.",
            usage={"total_tokens": 100, "api_calls": 1, "estimated_cost": 0.0, "model": "mock"},
        )

    def get_usage_stats(self) -> Dict:
        """Get mock usage statistics."""
        return {
            "total_tokens": len(self.calls) * 100,
            "api_calls": len(self.calls),
            "estimated_cost": 0.0,
            "model": "mock",
        }
