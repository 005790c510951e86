"""OpenAI adapter — implements TriagePort using the OpenAI API."""

from __future__ import annotations

import json
import logging

from openai import AsyncOpenAI

from app.application.ports.llm_port import TriagePort
from app.config import settings
from app.domain.entities.triage import TicketTriage, TriageRequest
from app.domain.value_objects.enums import MessageRole

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a technical assistant specialised in analysing customer support tickets.
You receive the details of a ticket and every message exchanged on it.

Tasks:
1. Categorise the ticket (e.g. Technical problem, Improvement request, Bug,
   General support, Configuration, Billing).
2. Analyse the most probable cause of the problem.
3. Write detailed step-by-step instructions an agent can follow to resolve it.

Return ONLY a JSON object with exactly these fields:

{
  "category": "ticket category",
  "probable_cause": "detailed analysis of the probable cause",
  "steps": ["Step 1: ...", "Step 2: ...", "Step 3: ..."]
}

Answer in the language the customer wrote in. No markdown, no extra text."""

ROLE_LABELS = {
    MessageRole.USER: "Customer",
    MessageRole.AGENT: "Agent",
    MessageRole.ASSISTANT: "AI",
}


class OpenAIAdapter(TriagePort):
    """OpenAI implementation of TriagePort."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_retries: int = 2,
    ):
        self._api_key = (api_key if api_key is not None else settings.openai_api_key).strip()
        self._client = AsyncOpenAI(api_key=self._api_key) if self._api_key else None
        self._model = model or settings.openai_model
        self._max_retries = max_retries

    def is_configured(self) -> bool:
        return self._client is not None

    async def analyze_ticket(self, request: TriageRequest) -> TicketTriage | None:
        """Send the ticket thread to OpenAI and parse the structured answer."""
        if self._client is None:
            logger.warning("OPENAI_API_KEY is not set. Skipping AI triage.")
            return None

        user_content = self._build_user_prompt(request)

        for attempt in range(1, self._max_retries + 1):
            try:
                response = await self._client.chat.completions.create(
                    model=self._model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": user_content},
                    ],
                    temperature=0.2,
                    response_format={"type": "json_object"},
                )
                raw_text = response.choices[0].message.content or ""
                return self._map_to_triage(json.loads(raw_text), raw_text)

            except json.JSONDecodeError:
                logger.warning(
                    "Attempt %d/%d: failed to parse JSON from LLM response",
                    attempt, self._max_retries,
                )
            except Exception:
                logger.exception(
                    "Attempt %d/%d: unexpected error during LLM call",
                    attempt, self._max_retries,
                )

        logger.warning("All LLM attempts failed for ticket %s", request.ticket.id)
        return None

    @staticmethod
    def _build_user_prompt(request: TriageRequest) -> str:
        t = request.ticket
        thread = "\n\n".join(
            f"[{ROLE_LABELS.get(m.role, m.role.value)}"
            f"{' - ' + m.created_at.isoformat() if m.created_at else ''}]: {m.content}"
            for m in request.messages
        ) or "No messages yet."

        return (
            "Ticket details:\n"
            f"- Title: {t.title}\n"
            f"- Description: {t.description or 'Not available'}\n"
            f"- Status: {t.status.value}\n"
            f"- Priority: {t.priority.value}\n"
            f"- Sentiment: {t.sentiment.value}\n"
            f"- Customer: {t.customer_name or 'Not provided'}\n\n"
            f"Messages:\n{thread}"
        )

    def _map_to_triage(self, parsed: dict, raw_text: str) -> TicketTriage:
        """Map raw LLM JSON to a TicketTriage, keeping partial answers."""
        category = parsed.get("category")
        cause = parsed.get("probable_cause")
        steps = parsed.get("steps")

        if not isinstance(steps, list):
            steps = [raw_text]
        return TicketTriage(
            category=category if isinstance(category, str) and category else "Uncategorised",
            probable_cause=cause if isinstance(cause, str) and cause else raw_text[:300],
            steps=[str(s) for s in steps],
            llm_model=self._model,
        )
