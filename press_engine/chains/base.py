"""Chain contract and the prompt-template chain used by every generator.

A chain is anything with `async invoke(inputs) -> output`. `PromptChain`
renders a LangChain `PromptTemplate`, sends it to a `CompletionProvider` and,
for JSON chains, validates the reply against a Pydantic schema. Test doubles
only need to implement `invoke`.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Generic, Protocol, TypeVar

from langchain_core.output_parsers import PydanticOutputParser
from langchain_core.prompts import PromptTemplate
from pydantic import BaseModel

from press_engine.core.errors import AIValidationError, Violation
from press_engine.core.logging import get_logger
from press_engine.core.output_parser import parse_structured
from press_engine.core.provider import CompletionProvider, get_provider

logger = get_logger(__name__)

InT = TypeVar("InT", contravariant=True)
OutT = TypeVar("OutT", covariant=True)
ModelT = TypeVar("ModelT", bound=BaseModel)


class Chain(Protocol[InT, OutT]):
    async def invoke(self, inputs: InT) -> OutT: ...


class PromptChain(Generic[ModelT]):
    """
    PromptTemplate -> CompletionProvider -> (optional) schema validation.

    With `output_schema` the chain returns a validated model instance and the
    template gets a `{format_instructions}` slot filled from the schema.
    Without it the chain returns the stripped completion text.
    """

    def __init__(
        self,
        name: str,
        template: str,
        input_variables: Sequence[str],
        provider: CompletionProvider | None = None,
        output_schema: type[ModelT] | None = None,
        model: str | None = None,
    ):
        self.name = name
        self.input_variables = list(input_variables)
        self.provider = provider or get_provider()
        self.output_schema = output_schema
        self.model = model

        partials: dict[str, Any] = {}
        if output_schema is not None:
            parser = PydanticOutputParser(pydantic_object=output_schema)
            partials["format_instructions"] = parser.get_format_instructions()

        self.prompt = PromptTemplate(
            template=template,
            input_variables=self.input_variables,
            partial_variables=partials,
        )

    def render(self, inputs: BaseModel | Mapping[str, Any]) -> str:
        """
        Fill the template from a model or mapping.

        Raises:
            AIValidationError: If a declared input variable is missing
        """
        values = inputs.model_dump() if isinstance(inputs, BaseModel) else dict(inputs)
        missing = [var for var in self.input_variables if values.get(var) is None]
        if missing:
            raise AIValidationError(
                f"Missing template variables for {self.name}: {', '.join(missing)}",
                violations=[Violation(var, "required template variable missing") for var in missing],
            )
        return self.prompt.format(**{var: values[var] for var in self.input_variables})

    async def invoke(self, inputs: BaseModel | Mapping[str, Any]) -> ModelT | str:
        prompt = self.render(inputs)
        raw = await self.provider.complete(prompt, model=self.model)

        if self.output_schema is None:
            return raw.strip()
        return parse_structured(self.output_schema, raw)
