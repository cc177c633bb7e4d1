"""Clarifying questions for a short app idea.

`ClarificationService.clarify` always returns a usable list: when no backend
produces a well-formed JSON array the fixed default questions are returned.
"""

import json
import logging
from typing import Any, Sequence

from zerobuild.errors import InsufficientOutputError, ZeroBuildError
from zerobuild.generation.orchestrator import ProviderOrchestrator
from zerobuild.llm.base import BackendAdapter
from zerobuild.models import ClarifyingQuestion, GenerationParams, GenerationRequest
from zerobuild.prompts import clarification_prompts

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS: tuple[ClarifyingQuestion, ...] = (
    ClarifyingQuestion(
        question="Who is this app mainly for?",
        options=("Just me", "Friends and family", "A business or its customers", "Anyone"),
    ),
    ClarifyingQuestion(
        question="Which feature matters most?",
        options=("Saving and organizing data", "Tracking progress over time", "Reminders", "Sharing"),
    ),
    ClarifyingQuestion(
        question="What look and feel do you want?",
        options=("Clean and minimal", "Bold and colorful", "Dark mode", "Playful"),
    ),
)

CLARIFY_PARAMS = GenerationParams(temperature=0.7, max_output_tokens=1024, min_response_chars=20)


def extract_first_array(text: str) -> str | None:
    """Return the first bracket-matched `[...]` substring, skipping brackets in strings."""
    start = text.find("[")
    if start < 0:
        return None

    depth = 0
    quote: str | None = None
    i = start
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
        i += 1
    return None


def _as_question(item: Any) -> ClarifyingQuestion | None:
    if not isinstance(item, dict):
        return None
    question = item.get("question")
    options = item.get("options")
    if not isinstance(question, str) or not question.strip():
        return None
    if not isinstance(options, list) or not options:
        return None
    return ClarifyingQuestion(
        question=question.strip(),
        options=tuple(str(option) for option in options),
    )


def parse_questions(raw: str) -> list[ClarifyingQuestion]:
    """Parse a model reply into questions.

    Raises:
        InsufficientOutputError: No array, invalid JSON, or the wrong shape
    """
    candidate = extract_first_array(raw)
    if candidate is None:
        raise InsufficientOutputError("no JSON array in clarification reply")
    try:
        data = json.loads(candidate)
    except ValueError as e:
        raise InsufficientOutputError(f"clarification reply is not valid JSON: {e}")

    if not isinstance(data, list) or len(data) < 2:
        raise InsufficientOutputError("clarification reply needs at least two questions")

    questions = []
    for item in data:
        question = _as_question(item)
        if question is None:
            raise InsufficientOutputError("clarification item missing question or options")
        questions.append(question)
    return questions


def _accept_array(raw: str) -> str:
    parse_questions(raw)
    return extract_first_array(raw) or raw


def build_enrichment(questions: Sequence[ClarifyingQuestion], answers: Sequence[str | None]) -> str:
    """Render the answered questions as extra prompt detail.

    Unanswered (empty or missing) answers are skipped.
    """
    lines = []
    for question, answer in zip(questions, answers):
        if answer and answer.strip():
            lines.append(f"- {question.question} {answer.strip()}")
    return "\n".join(lines)


class ClarificationService:
    def __init__(self, params: GenerationParams | None = None) -> None:
        self.orchestrator = ProviderOrchestrator(params or CLARIFY_PARAMS)

    async def clarify(
        self,
        prompt: str,
        adapters: Sequence[BackendAdapter],
        preferred_backend_id: str | None = None,
    ) -> list[ClarifyingQuestion]:
        request = GenerationRequest(prompt=prompt, preferred_backend_id=preferred_backend_id)
        try:
            result = await self.orchestrator.generate(
                request,
                adapters,
                accept=_accept_array,
                prompts=clarification_prompts(prompt),
            )
        except ZeroBuildError as e:
            logger.info(f"Using default clarifying questions: {e.message}")
            return list(DEFAULT_QUESTIONS)

        questions = parse_questions(result.text)
        logger.info(
            f"Got {len(questions)} clarifying questions",
            extra={"backend_id": result.origin_backend_id, "model": result.model_used},
        )
        return questions
