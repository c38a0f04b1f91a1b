"""RAG-based Q&A over the document index."""

from typing import Any

import anthropic

from .storage.base import IndexStoreBase


def ask_question(
    question: str,
    store: Any,
    index_store: IndexStoreBase,
    config: dict[str, Any],
    n_chunks: int = 4,
) -> dict[str, Any]:
    """Answer a question using the chunks nearest to it.

    Returns dict with 'text' (the answer) and 'sources' (list of source paths).
    """
    api_key = config.get("claude_api_key")
    if not api_key:
        raise ValueError(
            "Claude API key required. Set ANTHROPIC_API_KEY or claude_api_key in config."
        )

    results = index_store.query(store, question, n_results=n_chunks)
    if not results:
        return {"text": "No relevant documents found in the index.", "sources": []}

    # Build context from search results
    context_parts = []
    sources: dict[str, bool] = {}
    for i, r in enumerate(results, 1):
        source = r["metadata"].get("source", "unknown")
        sources[source] = True
        context_parts.append(f"[{i}] {source}:\n{r['document']}")

    context = "\n\n---\n\n".join(context_parts)

    client = anthropic.Anthropic(api_key=api_key)
    model = config.get("claude_model", "claude-sonnet-4-20250514")

    response = client.messages.create(
        model=model,
        max_tokens=1000,
        system="You are a helpful assistant answering questions based on the user's local documents. "
               "Use ONLY the provided context to answer. If the context doesn't contain enough information, say so.",
        messages=[{
            "role": "user",
            "content": f"Context from my documents:\n\n{context}\n\n---\n\nQuestion: {question}",
        }],
    )

    return {
        "text": response.content[0].text,
        "sources": list(sources.keys()),
    }
