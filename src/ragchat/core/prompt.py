"""Prompt functions rendering ``{question, context, chat_history}``.

A prompt function is any callable taking a :class:`PromptParameters`
and returning the final prompt string.  Two defaults are provided: one
for retrieval-augmented chats and one used when retrieval is disabled.
A langchain ``PromptTemplate`` can be adapted with
:func:`prompt_from_template`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from langchain_core.prompts import PromptTemplate

from .errors import ConfigurationError

TEMPLATE_VAR_QUESTION = "question"
TEMPLATE_VAR_CONTEXT = "context"
TEMPLATE_VAR_CHAT_HISTORY = "chat_history"


@dataclass(frozen=True)
class PromptParameters:
    """Inputs of a prompt function."""

    question: str
    context: str
    chat_history: str = ""


PromptFn = Callable[[PromptParameters], str]


def DEFAULT_PROMPT(params: PromptParameters) -> str:  # noqa: N802
    return f"""You are a friendly AI assistant augmented with a vector store.
To help you answer the questions, a context and/or chat history will be provided.
Answer the question at the end using only the information available in the context or chat history, either one is ok.

-------------
Chat history:
{params.chat_history}
-------------
Context:
{params.context}
-------------

Question: {params.question}
Helpful answer:"""


def DEFAULT_PROMPT_WITHOUT_RAG(params: PromptParameters) -> str:  # noqa: N802
    return f"""You are a friendly AI assistant.
Answer the question at the end, taking the chat history into account.

-------------
Chat history:
{params.chat_history}
-------------

Question: {params.question}
Helpful answer:"""


def prompt_from_template(template: PromptTemplate) -> PromptFn:
    """Adapt a langchain ``PromptTemplate`` into a prompt function.

    Only the variables the template declares among ``question``,
    ``context`` and ``chat_history`` are passed to ``format``.
    """
    available = {
        TEMPLATE_VAR_QUESTION,
        TEMPLATE_VAR_CONTEXT,
        TEMPLATE_VAR_CHAT_HISTORY,
    }
    unknown = set(template.input_variables) - available
    if unknown:
        raise ConfigurationError(
            f"Prompt template uses unsupported variables: {sorted(unknown)}"
        )

    def render(params: PromptParameters) -> str:
        values = {
            TEMPLATE_VAR_QUESTION: params.question,
            TEMPLATE_VAR_CONTEXT: params.context,
            TEMPLATE_VAR_CHAT_HISTORY: params.chat_history,
        }
        return template.format(
            **{k: v for k, v in values.items() if k in template.input_variables}
        )

    return render
