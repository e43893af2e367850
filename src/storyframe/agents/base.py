"""Base agent abstraction."""

import logging
from abc import ABC, abstractmethod
from typing import Generic, Optional, Type, TypeVar

from ..parsing import ModelT, parse_reply
from ..services.anthropic import AnthropicClient

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Abstract base class for text-generation agents.

    Provides shared functionality for agents that ask Claude for a JSON reply
    and parse it into an artifact model. Subclasses implement ``run`` and
    define their prompts.
    """

    temperature: float = 0.7
    max_tokens: int = 8192

    def __init__(self, client: AnthropicClient) -> None:
        """Initialize the agent.

        Args:
            client: Text-generation client used for every call.
        """
        self._client = client
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the agent's name."""
        ...

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """Return the system prompt for this agent."""
        ...

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._client.model

    @abstractmethod
    def run(self, input_data: InputT) -> OutputT:
        """Execute the agent's main task.

        Args:
            input_data: Input data for the agent.

        Returns:
            Structured output from the agent.
        """
        ...

    def _create_message(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Send the system prompt plus ``prompt`` and return the reply text.

        Args:
            prompt: The user prompt to send.
            temperature: Sampling temperature; defaults to the agent's.
            timeout: Optional wall-clock budget in seconds.

        Returns:
            The text content of Claude's response.
        """
        self._logger.debug(f"Creating message with prompt length: {len(prompt)}")

        messages = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": prompt},
        ]
        try:
            response = self._client.generate(
                messages,
                temperature=self.temperature if temperature is None else temperature,
                max_tokens=self.max_tokens,
                timeout=timeout,
            )
            self._logger.debug(f"Received response of length: {len(response)}")
            return response

        except Exception as e:
            self._logger.error(f"Error creating message: {e}")
            raise

    def _parse(self, response: str, model: Type[ModelT]) -> ModelT:
        """Parse a reply into ``model`` using the shared JSON contract."""
        try:
            return parse_reply(response, model)
        except Exception:
            self._logger.debug(f"Raw response: {response[:1000]}")
            raise
