"""Base agent class for all Gemini-backed agents."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from google.genai import types


class BaseAgent(ABC):
    """Base class for single-shot prompt agents."""

    def __init__(
        self,
        name: str,
        instructions: str,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        json_output: bool = False,
    ):
        """Initialize the agent.

        Args:
            name: Agent name
            instructions: System instructions for the agent
            model: Gemini model to use (defaults to GOOGLE_MODEL)
            temperature: Sampling temperature
            max_output_tokens: Response token ceiling
            json_output: Ask the model for an application/json response
        """
        self.name = name
        self.instructions = instructions
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.json_output = json_output
        self._client = None

    def _get_client(self):
        """Get or create the GenAI client."""
        if self._client is None:
            from google import genai
            from core.config import settings

            if not settings.google_api_key:
                raise RuntimeError("GOOGLE_API_KEY is not configured")
            self._client = genai.Client(api_key=settings.google_api_key)
            if self.model is None:
                self.model = settings.google_model
        return self._client

    @abstractmethod
    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Process input data and return results.

        Args:
            input_data: Input data for the agent

        Returns:
            Processing results
        """
        pass

    async def run(self, prompt: str) -> str:
        """Run the agent with a prompt.

        Args:
            prompt: User prompt

        Returns:
            Raw response text (empty string when the model returned nothing)
        """
        client = self._get_client()

        config = types.GenerateContentConfig(
            system_instruction=self.instructions,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json" if self.json_output else None,
        )
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )

        return response.text or ""
