"""
Conversation Window - token-budgeted recency window over a session history.

Messages are walked newest to oldest while their token counts (None counts
as zero) accumulate. The message that pushes the running total over the
budget is excluded and the walk stops there, except that the newest message
is always kept. The selection is returned in chronological order.
"""

from typing import Sequence

from chat_cache.models.domain import Message


CONVERSATION_SEPARATOR = "\n"


def select_window(messages: Sequence[Message], max_tokens: int) -> list[Message]:
    """
    Select the most recent messages that fit the token budget.

    Args:
        messages: Session history in chronological order.
        max_tokens: Token budget for the window.

    Returns:
        The selected messages, oldest first.

    Example:
        >>> history = [msg(800, "c"), msg(500, "b"), msg(3000, "a")]
        >>> [m.text for m in select_window(history, 4000)]
        ['b', 'a']
    """
    selected: list[Message] = []
    tokens_used = 0

    for message in reversed(messages):
        tokens_used += message.tokens or 0
        if tokens_used > max_tokens:
            if not selected:
                selected.append(message)
            break
        selected.append(message)

    selected.reverse()
    return selected


def render_conversation(messages: Sequence[Message]) -> str:
    """Join message texts with newlines."""
    return CONVERSATION_SEPARATOR.join(message.text for message in messages)

