"""
LLM Manager module that handles chat-completion calls.
"""

import logging
from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from src.config import Config, OPENAI_API_KEY
from src.utils.errors import UpstreamServiceError
from src.utils.template_loader import get_template

logger = logging.getLogger(__name__)


class LLMManager:
    """Black-box chat completion: one prompt in, prose out."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self._chat_openai: ChatOpenAI | None = None
        # Load system prompt once
        try:
            self._system_prompt: Optional[str] = get_template("system_prompt")
        except (FileNotFoundError, KeyError):
            self._system_prompt = None

    def _get_openai_llm(self) -> ChatOpenAI:
        """Return a configured ChatOpenAI client, created on first use."""
        if self._chat_openai is None:
            if not OPENAI_API_KEY:
                raise RuntimeError("OPENAI_API_KEY is not set")
            self._chat_openai = ChatOpenAI(
                api_key=OPENAI_API_KEY,
                model=self.config.get_llm_model(),
                temperature=self.config.get_llm_temperature(),
                max_tokens=self.config.get_llm_max_tokens(),
                timeout=self.config.get_llm_timeout(),
                max_retries=0,
            )
        return self._chat_openai

    async def __call__(self, prompt: str) -> str:
        return await self.complete(prompt)

    async def complete(self, prompt: str) -> str:
        """Send ``prompt`` and return the reply text.

        Raises:
            UpstreamServiceError: on any failure of the chat-completion call.
        """
        try:
            llm = self._get_openai_llm()
            if self._system_prompt:
                messages = [
                    SystemMessage(content=self._system_prompt),
                    HumanMessage(content=prompt),
                ]
                response = await llm.ainvoke(messages)
            else:
                response = await llm.ainvoke(prompt)
            return getattr(response, "content", str(response))
        except Exception as e:
            logger.error(f"Chat completion call failed: {str(e)}", exc_info=True)
            raise UpstreamServiceError("Chat completion failed", error=e) from e
