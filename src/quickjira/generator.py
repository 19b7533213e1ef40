"""Ticket drafting from rough text.

Sends the user's rough description to an OpenAI-compatible chat endpoint and
parses a strict {"summary", "description"} JSON answer.
"""

import json
from dataclasses import dataclass, replace

import openai
from openai import AsyncOpenAI

from .config import AIConfig, QuickJiraConfig, load_config
from .credentials import resolve_ai_key
from .errors import GenerationAPIError, MalformedResponseError, PreconditionError
from .logging import PerformanceTimer, get_logger

logger = get_logger("generator")

SYSTEM_PROMPT = """You are a helpful assistant that creates Jira ticket content from rough user input.
Given the user's rough description, generate:
- summary: A concise one-line title for the Jira ticket (max 100 chars)
- description: A clear, structured description suitable for a Jira ticket

Respond in the same language as the input.
Respond ONLY with valid JSON in this format: {"summary": "...", "description": "..."}"""


@dataclass(frozen=True)
class GeneratedTicket:
    summary: str  # intended to stay under 100 chars, not enforced
    description: str


def parse_generated_ticket(content: str | None) -> GeneratedTicket:
    """Parse the raw model output.

    Raises:
        MalformedResponseError: If the content is empty, not a JSON object, or
            lacks a non-empty string summary or description.
    """
    if not content or not content.strip():
        raise MalformedResponseError("OpenAI returned empty response", raw=content)

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"OpenAI response is not valid JSON: {e}", raw=content) from e

    if not isinstance(parsed, dict):
        raise MalformedResponseError("OpenAI response is not a JSON object", raw=content)

    summary = parsed.get("summary")
    description = parsed.get("description")
    if not isinstance(summary, str) or not isinstance(description, str) or not summary or not description:
        raise MalformedResponseError("OpenAI response missing summary or description", raw=content)

    return GeneratedTicket(summary=summary, description=description)


class TicketGenerator:
    """Drafts a ticket summary and description with a chat model."""

    def __init__(self, config: AIConfig | None = None, client: AsyncOpenAI | None = None):
        """Initialize the generator.

        Args:
            config: Optional AI configuration. Loads default if not provided.
            client: Optional preconfigured OpenAI client.
        """
        self.config = config or load_config().ai
        self._ai_client = client

    def _get_ai_client(self) -> AsyncOpenAI:
        """Get or create the AI client."""
        if self._ai_client is None:
            self._ai_client = AsyncOpenAI(
                base_url=self.config.api_base,
                api_key=self.config.api_key or "dummy",
                timeout=60.0,
            )
        return self._ai_client

    async def generate(self, rough_input: str) -> GeneratedTicket:
        """Turn rough text into a ticket draft.

        Raises:
            PreconditionError: If the input is blank.
            GenerationAPIError: If the provider rejects the request or is unreachable.
            MalformedResponseError: If the answer is not the expected JSON.
        """
        if not rough_input or not rough_input.strip():
            raise PreconditionError("Describe the ticket before generating")

        client = self._get_ai_client()
        with PerformanceTimer("generate", model=self.config.model) as timer:
            try:
                response = await client.chat.completions.create(
                    model=self.config.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": rough_input},
                    ],
                    temperature=self.config.temperature,
                )
            except openai.APIStatusError as e:
                logger.error(f"Ticket generation failed: {e.status_code}")
                raise GenerationAPIError(e.status_code, e.response.text) from e
            except openai.APIConnectionError as e:
                logger.error(f"Ticket generation failed: {e}")
                raise GenerationAPIError(0, str(e)) from e

            content = response.choices[0].message.content if response.choices else None
            timer.add_metric("response_length", len(content or ""))

        logger.debug(f"Generation response length: {len(content or '')}")
        return parse_generated_ticket(content)


def create_generator(config: QuickJiraConfig | None = None) -> TicketGenerator:
    """Create a generator whose API key may come from the keyring."""
    config = config or load_config()
    return TicketGenerator(replace(config.ai, api_key=resolve_ai_key(config)))
