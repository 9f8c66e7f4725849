"""Website chat assistant backed by OpenAI chat completions."""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from enablr.db import ChatbotMessage, get_session
from enablr.errors import ValidationError
from enablr.llm.providers import OpenAIChat

logger = logging.getLogger("agent.chat")

MAX_MESSAGE_LENGTH = 1000
MAX_CONVERSATION_TURNS = 50
HISTORY_WINDOW = 10

HANDOFF_MESSAGE = (
    "We've been chatting for a while! For more detailed help, I'd recommend booking a "
    "discovery call where you can speak with someone from the team directly."
)
FALLBACK_MESSAGE = (
    "I'm having trouble responding right now. Please try again or book a discovery call."
)

SYSTEM_PROMPT = """You are the AI assistant for Enablr, a UK-based company that helps small businesses use AI practically and confidently.

Your role is to:
1. Answer questions about Enablr's services (team upskilling on everyday AI tools, and custom automations/apps)
2. Help visitors understand whether AI training, a custom build, or both might suit them
3. Qualify interest by asking about their team size, current AI use, and goals
4. Encourage qualified visitors to request a discovery call via the form on our homepage or start the AI readiness check

Your tone:
- Calm, professional, and practical.
- START ANSWERS DIRECTLY. DO NOT SAY "HELLO".
- STRICTLY NO EMOJIS.
- Act like a sensible business advisor, never use hype or dramatic language.
- Plain English only, no jargon (don't say "LLM", "neural network", "NLP" etc.)
- Be honest if something is outside your knowledge; suggest a discovery call for complex questions

Guardrails:
- Do not provide legal, financial, HR, or medical advice
- Do not ask for or store sensitive personal data (passwords, payment info, health info)
- Keep responses concise (under 100 words unless asked to elaborate)
- If asked about pricing, say "Training typically starts from £500 and builds vary by scope, so you can request a discovery call on our homepage for a proper quote"

When to transition:
- After 3-4 qualifying exchanges, encourage requesting a discovery call via our homepage form
- If they seem interested, ask for their name, email, and company to have someone follow up
- Always offer the AI readiness check as a self-serve alternative

Services offered:
1. AI Readiness & Team Upskilling: Training teams on ChatGPT, Microsoft Copilot, Google Workspace AI.
2. Custom Automations & Apps: Building internal tools, dashboards, and automations tailored to the client's workflows.

Based in Birmingham, UK. No lock-in contracts. Clear, upfront pricing."""


class ChatAgent:
    def __init__(self, client: OpenAIChat) -> None:
        self.client = client

    async def reply(
        self,
        message: Optional[str],
        conversation_id: Optional[str],
        history: Sequence[Dict[str, str]] = (),
    ) -> str:
        self.client.ensure_configured()
        if not message or not isinstance(message, str):
            raise ValidationError("Message is required", field="message")
        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError("Message too long", field="message")

        if len(history) >= MAX_CONVERSATION_TURNS:
            return HANDOFF_MESSAGE

        messages: List[Dict[str, str]] = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend(
            {"role": turn["role"], "content": turn["content"]} for turn in history[-HISTORY_WINDOW:]
        )
        messages.append({"role": "user", "content": message})

        answer = await asyncio.to_thread(self.client.chat, messages, max_tokens=300, temperature=0.3)
        answer = answer or FALLBACK_MESSAGE

        if conversation_id:
            await self._store(conversation_id, message, answer)
        return answer

    async def _store(self, conversation_id: str, user_message: str, assistant_message: str) -> None:
        try:
            async with get_session() as session:
                session.add_all(
                    [
                        ChatbotMessage(conversation_id=conversation_id, role="user", content=user_message),
                        ChatbotMessage(
                            conversation_id=conversation_id, role="assistant", content=assistant_message
                        ),
                    ]
                )
                await session.commit()
        except SQLAlchemyError as exc:
            # transcripts are best-effort; the visitor still gets an answer
            logger.error("Failed to store chat transcript for %s", conversation_id, exc_info=exc)
