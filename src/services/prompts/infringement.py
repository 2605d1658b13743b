"""Infringement classification prompt and reply handling.

Contains prompts for:
- INFRINGEMENT_CLASSIFIER_V1: single-video promotion-vs-discussion decision
"""

import re

# Maximum description characters included in the prompt
DESCRIPTION_SNIPPET_CHARS = 200

# Infringement Classifier v1 prompt
# Template placeholders: {title}, {channel}, {description}
INFRINGEMENT_CLASSIFIER_V1 = """Only output JSON. Decide if the video is clearly promoting copyright infringement (not just discussing it).

Video title: "{title}"
Channel: {channel}
Description (snippet): "{description}"

Rules:
- Only mark as infringing if it is CLEAR promotion/availability (e.g., download/undetected/free/link/discord/injector/loader/bypass) of cheats or pirated media.
- Do NOT mark as infringing for news, discussions, tutorials against cheating, controller settings, montages, highlights, or exposure content.
- If ambiguous, set isLikelyInfringing=false with low confidence.

Return JSON with:
{{
  "isLikelyInfringing": boolean,
  "confidenceScore": 0-100,
  "reasons": ["max 3 very short reasons"],
  "copyrightType": "movie|tvshow|music|game|software|other|none",
  "fairUseFactors": []
}}"""


def build_infringement_prompt(title: str, channel: str, description: str) -> str:
    """Fill the classifier template with bounded video text."""
    snippet = (description or "")[:DESCRIPTION_SNIPPET_CHARS]
    return INFRINGEMENT_CLASSIFIER_V1.format(
        title=(title or "").replace('"', "'"),
        channel=channel or "",
        description=snippet.replace('"', "'"),
    )


_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json_text(text: str) -> str:
    """Pull the JSON payload out of a model reply.

    Handles replies wrapped in markdown fences and a single object surrounded by
    prose. Anything else comes back stripped for the JSON parser to reject.
    """
    text = (text or "").strip()
    fenced = _FENCED_BLOCK_RE.search(text)
    if fenced:
        return fenced.group(1).strip()

    start, end = text.find("{"), text.rfind("}")
    if not text.startswith("[") and start != -1 and end > start:
        return text[start : end + 1]
    return text
