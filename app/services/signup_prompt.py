"""
Signup prompt gate: the optional host question asked before a join is committed
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union
import uuid

from app.core.exceptions import ValidationError
from app.models.move import Move

# Either the answer itself, or a callable asked synchronously with the prompt text
PromptAnswer = Union[str, None, Callable[[str], Optional[str]]]


def collect_response(move: Move, answer: PromptAnswer) -> Optional[str]:
    """
    Return the trimmed answer to the move's prompt, or None when there is
    nothing to record. Raises ValidationError when an answer is required
    but missing; nothing has been mutated at that point.
    """
    if not move.has_signup_prompt:
        return None

    if callable(answer):
        answer = answer(move.signup_prompt)

    text = (answer or "").strip()
    if move.signup_prompt_requires_response and not text:
        raise ValidationError(
            f"The host asks: \"{move.signup_prompt}\". An answer is required to join.",
            field="response",
        )
    return text or None


def record_response(move: Move, attendee: str, response: str, now: datetime) -> List[Dict[str, Any]]:
    """signup_responses with this attendee's answer replacing any earlier one"""
    responses = [
        entry.model_dump(mode="json")
        for entry in move.signup_responses
        if entry.attendee != attendee
    ]
    responses.append({
        "id": str(uuid.uuid4()),
        "attendee": attendee,
        "response": response,
        "created_at": now.isoformat(),
    })
    return responses
