"""Centralized FastAPI dependency type aliases.

Each alias can be overridden in tests via
``app.dependency_overrides[get_xxx] = ...``.
"""

from typing import Annotated

from fastapi import Depends

from ragchat.core.chat import RAGChat
from ragchat.core.deps import get_rag_chat

RAGChatDep = Annotated[RAGChat, Depends(get_rag_chat)]
