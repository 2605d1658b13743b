"""Term lists shared by the pre-filter and the classifier guardrail.

Two separate families live here on purpose. The pre-filter lists are a cheap
triage signal and are tuned for recall. The guardrail lists decide whether a
model verdict may stand, so they stay narrower: "tutorial" or "review" are
legitimate-context hints for triage, but a video that promotes a download link
inside a "tutorial" must still be flaggable.
"""

import re

# ---------------------------------------------------------------------------
# Pre-filter (triage) lists
# ---------------------------------------------------------------------------

# Generic infringement keywords: +1 each
INFRINGEMENT_KEYWORDS = (
    "full movie",
    "full film",
    "entire movie",
    "complete movie",
    "hack",
    "cheat",
    "aimbot",
    "wallhack",
    "exploit",
    "mod menu",
    "cracked",
    "pirated",
    "leaked",
    "unreleased",
    "free download",
    "no survey",
    "working 2024",
    "working 2025",
    "100% working",
    "undetected",
    "bypass",
    "unlimited",
    "generator",
    "free coins",
    "free gems",
    "free vbucks",
    "discord",
    "injector",
    "loader",
    "key auth",
    "spoof",
)

# Distribution / promotion indicators: +3 each
DISTRIBUTION_INDICATORS = (
    "download",
    "free",
    "link",
    "discord",
    "telegram",
    "t.me",
    "injector",
    "loader",
    "bypass",
    "keyauth",
    "key auth",
    "pastebin",
    "mediafire",
    "mega",
    "mega.nz",
    "gofile",
    "google drive",
    "drive.google.com",
    "bit.ly",
    "tinyurl",
    "goo.gl",
    "crack",
    "cracked",
)

# Legitimate-context keywords: +1 legitimate each
LEGITIMATE_KEYWORDS = (
    "official",
    "trailer",
    "review",
    "reaction",
    "commentary",
    "tutorial",
    "guide",
    "tips",
    "tricks",
    "gameplay",
    "walkthrough",
    "let's play",
    "highlights",
    "montage",
    "news",
    "update",
    "patch notes",
    "season",
    "exposed",
    "expose",
    "banned",
    "ban",
    "report",
    "settings",
    "controller",
    "creative",
    "map code",
)

# Messaging-app invite links in a description
MESSAGING_INVITE_RE = re.compile(r"(discord\.gg|discord|t\.me|telegram)/")

YEAR_TOKEN_RE = re.compile(r"\d{4}")

# ---------------------------------------------------------------------------
# Guardrail lists
# ---------------------------------------------------------------------------

PROMOTION_TERMS = (
    "download",
    "undetected",
    "free",
    "link",
    "discord",
    "telegram",
    "injector",
    "loader",
    "bypass",
    "cheat menu",
    "aimbot",
    "esp",
    "wallhack",
    "crack",
    "cracked",
    "script",
    "cfg",
    "paste",
)

LEGITIMATE_CONTEXT_TERMS = (
    "expose",
    "exposed",
    "ban",
    "banned",
    "caught",
    "hunter",
    "counter",
    "report",
    "settings",
    "how to report",
    "news",
    "update",
    "montage",
    "highlights",
    "clip",
    "creative",
    "map code",
    "gamemode",
    "controller settings",
)


def count_hits(text: str, terms) -> int:
    """Number of terms occurring in text (substring match, one count per term)."""
    return sum(1 for term in terms if term in text)


def contains_any(text: str, terms) -> bool:
    return any(term in text for term in terms)


def matching_terms(text: str, terms) -> list[str]:
    return [term for term in terms if term in text]
