"""Prompts module - centralized prompt templates for AI services.

Re-exports all prompt constants and utilities for easy importing:
    from services.prompts import PROMPT_VERSIONS, extract_json_text
    from services.prompts import INFRINGEMENT_CLASSIFIER_V1, build_infringement_prompt
"""

from services.prompts.infringement import (
    DESCRIPTION_SNIPPET_CHARS,
    INFRINGEMENT_CLASSIFIER_V1,
    build_infringement_prompt,
    extract_json_text,
)

# Increment when a prompt changes so logged verdicts can be traced to a prompt revision
PROMPT_VERSIONS = {
    "classify_infringement": "v1",
}

__all__ = [
    # Version tracking
    "PROMPT_VERSIONS",
    # Classification prompt and its reply handling
    "DESCRIPTION_SNIPPET_CHARS",
    "INFRINGEMENT_CLASSIFIER_V1",
    "build_infringement_prompt",
    "extract_json_text",
]
