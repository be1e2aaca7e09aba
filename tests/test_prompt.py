"""Tests for prompt functions and the PromptTemplate adapter."""

import pytest
from langchain_core.prompts import PromptTemplate

from ragchat.core.errors import ConfigurationError
from ragchat.core.prompt import (
    DEFAULT_PROMPT,
    DEFAULT_PROMPT_WITHOUT_RAG,
    PromptParameters,
    prompt_from_template,
)

PARAMS = PromptParameters(
    question="Where is Ankara?",
    context="Ankara is the capital of Turkey.",
    chat_history="USER MESSAGE: hi",
)


class TestDefaultPrompts:
    def test_rag_prompt_contains_all_parts(self):
        prompt = DEFAULT_PROMPT(PARAMS)
        assert "Question: Where is Ankara?" in prompt
        assert "Ankara is the capital of Turkey." in prompt
        assert "USER MESSAGE: hi" in prompt

    def test_no_rag_prompt_has_no_context_section(self):
        prompt = DEFAULT_PROMPT_WITHOUT_RAG(PARAMS)
        assert "Context:" not in prompt
        assert "Ankara is the capital of Turkey." not in prompt
        assert "Question: Where is Ankara?" in prompt
        assert "USER MESSAGE: hi" in prompt


class TestPromptFromTemplate:
    def test_renders_declared_variables(self):
        template = PromptTemplate.from_template(
            "H:{chat_history}|C:{context}|Q:{question}"
        )
        render = prompt_from_template(template)
        assert render(PARAMS) == (
            "H:USER MESSAGE: hi|C:Ankara is the capital of Turkey.|Q:Where is Ankara?"
        )

    def test_subset_of_variables(self):
        render = prompt_from_template(PromptTemplate.from_template("Q={question}"))
        assert render(PARAMS) == "Q=Where is Ankara?"

    def test_unknown_variable_rejected(self):
        with pytest.raises(ConfigurationError, match="persona"):
            prompt_from_template(PromptTemplate.from_template("{persona} {question}"))
