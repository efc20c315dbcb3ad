# luckyshot/assistant.py - answer questions about the indexed codebase

from typing import Any, Dict, List, Optional

from luckyshot.errors import ConfigurationError
from luckyshot.llm import LLMClient
from luckyshot.retrieval.orchestrator import HybridRetriever
from luckyshot.retrieval.ranker import ScoredMatch

SYSTEM_PROMPT = (
    "You answer questions about a software project. "
    "Use the provided files as your primary source and cite file names. "
    "If the files do not contain the answer, say so."
)

# characters of file content sent per file
MAX_FILE_CHARS = 12000


def build_messages(question: str, matches: List[ScoredMatch]) -> List[Dict[str, Any]]:
    sections = []
    for m in matches:
        if not m.content:
            continue
        content = m.content[:MAX_FILE_CHARS]
        sections.append(f"--- Content from {m.filename} ---\n{content}\n--- End content ---")

    context = "\n\n".join(sections) if sections else "(no relevant files found)"
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"Relevant files:\n\n{context}\n\nQuestion: {question}"},
    ]


def answer_question(
    question: str,
    retriever: HybridRetriever,
    llm: Optional[LLMClient] = None,
    top_n: int = 5,
) -> Dict[str, Any]:
    """
    Retrieve the `top_n` most relevant files for `question` and ask the chat
    model. Returns {"answer": str, "files": [filename, ...]}.
    """
    if not question or not question.strip():
        raise ConfigurationError("Question must not be empty")

    matches = retriever.fetch_context(question, top_n=top_n)
    llm = llm or LLMClient(settings=retriever.settings)
    answer = llm.chat_completion(build_messages(question, matches))
    return {"answer": answer, "files": [m.filename for m in matches]}
