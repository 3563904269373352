"""
Prompt compilation.

Renders a PromptDocument into the text format of its target model. The
output depends only on the document, so the same document always renders
to the same text.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Union

from .document import (
    MAX_WEIGHT,
    MIN_WEIGHT,
    Category,
    PromptDocument,
    RenderParams,
    TargetModel,
    TrailerStyle,
    WeightStyle,
)

MAX_REPEATS = 3
NEGATIVE_LABEL = "Negative prompt:"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _round_weight(value: float) -> float:
    """Two decimals, halves rounded up."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_number(value: Union[int, float]) -> str:
    """Render 2.0 as "2" and 1.5 as "1.5"."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def apply_weight(text: str, weight: Optional[float], model: TargetModel) -> str:
    """Encode a fragment weight in the target model's syntax.

    Numeric-weight models get ``(text:weight)``; the others have no weight
    syntax, so emphasis is expressed by repeating the text up to three times.
    """
    if weight is None or weight == 1:
        return text

    if model.weight_style is WeightStyle.NUMERIC:
        w = _round_weight(max(MIN_WEIGHT, min(MAX_WEIGHT, weight)))
        return f"({text}:{format_number(w)})"

    repeats = _round_half_up(max(1, min(MAX_REPEATS, weight)))
    return ", ".join([text] * repeats)


def cli_modifiers(params: RenderParams) -> List[str]:
    """Modifier tokens for the parameters that are set."""
    tokens = []
    if params.aspect_ratio:
        tokens.append(f"--ar {params.aspect_ratio}")
    if params.stylize is not None:
        tokens.append(f"--s {format_number(params.stylize)}")
    if params.quality is not None:
        tokens.append(f"--q {format_number(params.quality)}")
    if params.seed:
        tokens.append(f"--seed {params.seed}")
    return tokens


def compile_prompt(doc: PromptDocument) -> str:
    """Render ``doc`` to prompt text for its target model.

    Args:
        doc: Document to render

    Returns:
        Rendered prompt; empty when the document has no content
    """
    parts = []
    subject = (doc.subject or "").strip()
    if subject:
        parts.append(subject)

    for fragment in doc.fragments:
        if fragment.category == Category.NEGATIVE:
            continue
        text = (fragment.text or "").strip()
        if not text:
            continue
        parts.append(apply_weight(text, fragment.weight, doc.target_model))

    base = ", ".join(parts)
    trailer = doc.target_model.trailer_style

    if trailer is TrailerStyle.CLI_MODIFIERS:
        return f"{base} {' '.join(cli_modifiers(doc.render_params))}".strip()

    if trailer is TrailerStyle.NEGATIVE_PROMPT:
        negative = (doc.negative or "").strip()
        return f"{base}\n\n{NEGATIVE_LABEL} {negative}" if negative else base

    return base
