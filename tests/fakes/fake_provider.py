"""Fake completion provider for chain and retrieval tests."""

from collections.abc import Callable
from typing import Any


class FakeProvider:
    """
    Records prompts and returns scripted completions.

    `completion` may be a string or a callable taking the prompt. Embeddings
    come from `embedding_for` (default: a 3-d vector keyed on text length).
    """

    def __init__(
        self,
        completion: str | Callable[[str], str] = "",
        embedding_for: Callable[[str], list[float]] | None = None,
        complete_error: Exception | None = None,
        embed_error: Exception | None = None,
    ):
        self.completion = completion
        self.embedding_for = embedding_for or (lambda text: [float(len(text)), 1.0, 0.0])
        self.complete_error = complete_error
        self.embed_error = embed_error
        self.prompts: list[str] = []
        self.embed_calls: list[list[str]] = []

    async def complete(self, prompt: str, model: str | None = None) -> str:
        self.prompts.append(prompt)
        if self.complete_error is not None:
            raise self.complete_error
        if callable(self.completion):
            return self.completion(prompt)
        return self.completion

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.embed_calls.append(list(texts))
        if self.embed_error is not None:
            raise self.embed_error
        return [self.embedding_for(text) for text in texts]


class FakeChain:
    """Chain double returning a fixed payload and recording inputs."""

    def __init__(self, payload: Any = None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.inputs: list[Any] = []

    async def invoke(self, inputs: Any) -> Any:
        self.inputs.append(inputs)
        if self.error is not None:
            raise self.error
        return self.payload
