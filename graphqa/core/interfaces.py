from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence


class LLMInterface(ABC):
    """Abstract interface for LLM implementations"""

    @abstractmethod
    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 512,
    ) -> str:
        pass


class QueryExecutorInterface(ABC):
    """Abstract interface for read-only query execution against the store"""

    @abstractmethod
    def execute(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> List[Dict[str, Any]]:
        pass
