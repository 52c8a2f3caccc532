"""
Prompts for Sentiment Scoring

The model returns a continuous score on the same 0-4 scale the aggregates use.
"""

from textwrap import dedent

SENTIMENT_SYSTEM_PROMPT = dedent(
    """
    You are a sentiment analysis expert. Rate the sentiment of the chat message you are given.

    **Scale (0 to 4, decimals allowed):**
    - 0 = very negative
    - 1 = negative
    - 2 = neutral
    - 3 = positive
    - 4 = very positive

    **Instructions:**
    - Judge the message on its own; do not assume context that is not there.
    - Sarcasm counts toward the sentiment it actually expresses.
    - Also report your confidence between 0 and 1.

    Respond with JSON only, in this format:
    {"score": <number between 0 and 4>, "confidence": <number between 0 and 1>}
    """
).strip()

SENTIMENT_USER_PROMPT_TEMPLATE = dedent(
    """
    **Message:**
    {content}
    """
).strip()
