"""
Heuristic prompt quality checks.

Rules run in a fixed order against the document and its compiled text:
1. Missing subject (error)
2. Missing camera cues (warning)
3. Missing lighting cues (warning)
4. Phrases repeated three or more times (warning)
5. Contradicting cues, one warning per matched pair
6. Overlong prompt for plain-sentence models (warning)
"""

import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern

from .compiler import compile_prompt
from .document import Category, PromptDocument, TrailerStyle


class Severity(Enum):
    """Finding severity."""
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class LintFinding:
    """One lint result, recomputed on every call."""
    severity: Severity
    code: str
    message: str
    hint: Optional[str] = None


@dataclass(frozen=True)
class Contradiction:
    """Pair of cue patterns that should not appear together."""
    a: Pattern
    b: Pattern
    message: str


CONTRADICTIONS = [
    Contradiction(
        re.compile(r"black\s*and\s*white|monochrome|noir"),
        re.compile(r"vibrant|neon|pastel|colorful"),
        "Color contradiction: monochrome/noir with vibrant/pastel cues.",
    ),
    Contradiction(
        re.compile(r"macro|extreme\s*close\s*up"),
        re.compile(r"wide\s*shot|panoramic|aerial|drone"),
        "Camera contradiction: macro/close-up with wide/drone cues.",
    ),
    Contradiction(
        re.compile(r"minimal|minimalist"),
        re.compile(r"ornate|baroque|maximal"),
        "Style contradiction: minimal with ornate/maximal cues.",
    ),
]

REDUNDANCY_THRESHOLD = 3
MAX_REDUNDANT_LISTED = 4
MAX_PLAIN_LENGTH = 900


def redundant_phrases(text: str) -> List[str]:
    """Normalized phrases that occur at least three times, first-seen order."""
    phrases = [p.strip() for p in re.split(r"[,\n]+", text.lower())]
    counts = Counter(p for p in phrases if p)
    return [phrase for phrase, count in counts.items() if count >= REDUNDANCY_THRESHOLD]


def lint_prompt(doc: PromptDocument) -> List[LintFinding]:
    """Run every rule against ``doc`` and return findings in rule order.

    Never raises and never mutates the document.
    """
    findings: List[LintFinding] = []
    text = compile_prompt(doc)

    if not (doc.subject or "").strip():
        findings.append(LintFinding(
            Severity.ERROR, "NO_SUBJECT", "Missing subject.",
            "Describe the main subject in one clear sentence.",
        ))

    if not doc.fragments_in(Category.CAMERA):
        findings.append(LintFinding(
            Severity.WARNING, "NO_CAMERA", "No camera/view cues.",
            "Add lens/shot type (wide, 35mm, macro, aerial, etc.).",
        ))
    if not doc.fragments_in(Category.LIGHTING):
        findings.append(LintFinding(
            Severity.WARNING, "NO_LIGHTING", "No lighting cues.",
            "Add lighting like golden hour, cinematic, volumetric, softbox.",
        ))

    normalized = text.lower()

    repeated = redundant_phrases(normalized)
    if repeated:
        findings.append(LintFinding(
            Severity.WARNING, "REDUNDANT",
            f"Repeated phrases: {', '.join(repeated[:MAX_REDUNDANT_LISTED])}",
            "Remove duplicates; emphasize with weighting instead.",
        ))

    for pair in CONTRADICTIONS:
        if pair.a.search(normalized) and pair.b.search(normalized):
            findings.append(LintFinding(
                Severity.WARNING, "CONTRADICTION", pair.message,
                "Pick one direction, or clarify which part each cue applies to.",
            ))

    if doc.target_model.trailer_style is TrailerStyle.PLAIN and len(text) > MAX_PLAIN_LENGTH:
        findings.append(LintFinding(
            Severity.WARNING, "TOO_LONG",
            "Prompt is very long for sentence-style prompting.",
            "Reduce to the most important details (subject, setting, style, lighting, camera).",
        ))

    return findings
