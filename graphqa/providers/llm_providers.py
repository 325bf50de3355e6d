# llm_providers.py
"""
Groq LLM provider for the knowledge-graph QA layer using LangChain

Setup:
1. Sign up at https://console.groq.com/
2. Get an API key
3. Set environment variable: export GROQ_API_KEY=your_key
"""

import logging
from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.utils.utils import convert_to_secret_str
from langchain_groq import ChatGroq

from graphqa.core import LLMInterface, settings
from graphqa.core.exceptions import LLMProviderError
from .mock_llm import MockLLM

logger = logging.getLogger(__name__)


class LangChainLLMWrapper(LLMInterface):
    """Base wrapper for LangChain chat models"""

    def __init__(self, llm):
        self.llm = llm
        self.output_parser = StrOutputParser()

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 512,
    ) -> str:
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]
        chain = self.llm.bind(temperature=temperature, max_tokens=max_tokens) | self.output_parser
        try:
            return chain.invoke(messages)
        except Exception as e:
            logger.warning(f"LLM call failed: {str(e)}")
            raise LLMProviderError(f"LLM call failed: {str(e)}") from e


class GroqLLM(LangChainLLMWrapper):
    """Groq API through LangChain"""

    def __init__(self, model_name: Optional[str] = None, api_key: Optional[str] = None):
        api_key = api_key or settings.GROQ_API_KEY
        if not api_key:
            raise LLMProviderError("GROQ_API_KEY is not configured")

        self.model_name = model_name or settings.LLM_MODEL
        llm = ChatGroq(
            model=self.model_name,
            temperature=0.1,
            max_tokens=1024,
            api_key=convert_to_secret_str(api_key),
        )
        super().__init__(llm)


def create_llm(model_name: Optional[str] = None) -> LLMInterface:
    """
    Factory function to create the configured LLM

    Returns a MockLLM when no Groq API key is configured, so questions still
    resolve (template routes work; synthesis yields an empty result).
    """
    if not settings.GROQ_API_KEY:
        logger.warning("GROQ_API_KEY not set, using MockLLM")
        return MockLLM()

    logger.info(f"Using Groq model {model_name or settings.LLM_MODEL}")
    return GroqLLM(model_name=model_name)
