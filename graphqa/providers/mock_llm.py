# mock_llm.py
from typing import Callable, Dict, Iterable, List, Optional, Union

from graphqa.core import LLMInterface
from graphqa.core.exceptions import LLMProviderError

Response = Union[str, Exception]


class MockLLM(LLMInterface):
    """Mock LLM implementation for tests and key-less development.

    Responses are consumed in order; an Exception instance in the script is
    raised as an LLMProviderError. Once the script runs out, `default` is
    returned (or `responder(system_prompt, user_prompt)` when given).
    """

    def __init__(
        self,
        responses: Optional[Iterable[Response]] = None,
        default: str = "",
        responder: Optional[Callable[[str, str], str]] = None,
    ):
        self.responses: List[Response] = list(responses or [])
        self.default = default
        self.responder = responder
        self.calls: List[Dict[str, object]] = []

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 512,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise LLMProviderError(str(response)) from response
            return response
        if self.responder is not None:
            return self.responder(system_prompt, user_prompt)
        return self.default
