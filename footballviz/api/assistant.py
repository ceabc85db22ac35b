"""
Natural-language endpoints: the plain AI query plus the LangChain service
(translation to filters, analysis queries, workflows, conversation history).
"""

from typing import Any, Dict, Optional

from footballviz.api.client import ApiClient, parse_model
from footballviz.data.models.plays import (
    AIResponse,
    LangChainQueryResult,
    LangChainStatus,
    TranslationResult,
)


class AssistantService:
    def __init__(self, client: ApiClient):
        self.client = client

    async def ask_question(self, query: str) -> AIResponse:
        data = await self.client.post("/ai/query", json={"query": query})
        return parse_model(AIResponse, data, "/ai/query")

    async def translate_query(self, query: str) -> TranslationResult:
        """Translate a question into filter conditions without running it."""
        data = await self.client.post("/langchain/translate", json={"query": query})
        return parse_model(TranslationResult, data, "/langchain/translate")

    async def ask_langchain_query(
        self, query: str, game_id: Optional[int] = None
    ) -> LangChainQueryResult:
        payload: Dict[str, Any] = {"query": query}
        if game_id:
            payload["game_id"] = game_id
        data = await self.client.post("/langchain/query", json=payload)
        return parse_model(LangChainQueryResult, data, "/langchain/query")

    async def get_langchain_status(self) -> LangChainStatus:
        data = await self.client.get("/langchain/status")
        return parse_model(LangChainStatus, data, "/langchain/status")

    async def run_workflow(self, workflow_name: str, game_id: Optional[int] = None) -> Any:
        payload: Dict[str, Any] = {"workflow_name": workflow_name}
        if game_id:
            payload["game_id"] = game_id
        return await self.client.post("/langchain/workflow", json=payload)

    async def get_conversation_history(self) -> Any:
        return await self.client.get("/langchain/conversation/history")
