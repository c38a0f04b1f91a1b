"""Bridge between the remote chat assistant and the local index.

Questions arrive over a persistent Socket.IO connection as
``process_question {text}`` and answers go back as ``queryResult``.
Answering holds the engine's gate, so a query never sees a half-applied update.
"""

import asyncio
import logging
from typing import Any, Callable

import socketio

from .errors import NotInitialized
from .qa import ask_question
from .sync.engine import SyncEngine

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://goldenretriever.herokuapp.com"

AnswerFn = Callable[[str, Any], dict[str, Any]]


class QueryGateway:
    """Answers questions from the remote assistant against the engine's index."""

    def __init__(
        self,
        engine: SyncEngine,
        url: str = DEFAULT_SERVER_URL,
        answer: AnswerFn | None = None,
        n_chunks: int = 4,
        client: socketio.AsyncClient | None = None,
    ):
        self.engine = engine
        self.url = url
        self.n_chunks = n_chunks
        self.answer = answer or self._default_answer
        self.sio = client if client is not None else socketio.AsyncClient()
        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)
        self.sio.on("process_question", self._on_question)

    def _default_answer(self, question: str, store: Any) -> dict[str, Any]:
        return ask_question(
            question, store, self.engine.index_store, self.engine.config, n_chunks=self.n_chunks
        )

    async def run(self) -> None:
        """Connect and serve questions until the connection is closed."""
        logger.info("Connecting to %s", self.url)
        await self.sio.connect(self.url)
        await self.sio.wait()

    async def close(self) -> None:
        await self.sio.disconnect()

    async def handle_question(self, data: Any) -> list[dict[str, Any]]:
        """Answer one question and shape the ``queryResult`` payload."""
        text = data.get("text") if isinstance(data, dict) else None
        question = str(text or "").strip()
        if not question:
            return [{"answer": "No question given.", "source": None}]

        logger.info("Processing question: %s", question)

        async def answer_guarded() -> dict[str, Any]:
            if self.engine.store is None:
                raise NotInitialized("The document index is not ready yet")
            return await asyncio.to_thread(self.answer, question, self.engine.store)

        try:
            result = await self.engine.gate.run_exclusive(answer_guarded)
        except Exception as e:
            logger.exception("Question could not be answered: %s", question)
            return [{"answer": f"The question could not be answered: {e}", "source": None}]

        return [{"answer": result.get("text", ""), "source": result.get("sources")}]

    async def _on_connect(self) -> None:
        logger.info("Connected to %s, connection id: %s", self.url, self.sio.sid)
        logger.info("Ready, waiting for questions")

    async def _on_disconnect(self, *args) -> None:
        logger.info("Disconnected from %s", self.url)

    async def _on_question(self, data: Any) -> None:
        response = await self.handle_question(data)
        logger.info("Sending result")
        await self.sio.emit("queryResult", response)
