"""
Prompt document data model.

A document is a subject, an ordered list of weighted fragments, a negative
prompt and the target model whose rendering conventions apply.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

MIN_WEIGHT = 0.2
MAX_WEIGHT = 2.0


class Category(Enum):
    """Closed set of fragment categories."""
    SUBJECT = "subject"
    SCENE = "scene"
    STYLE = "style"
    COMPOSITION = "composition"
    LIGHTING = "lighting"
    CAMERA = "camera"
    MOOD = "mood"
    MATERIALS = "materials"
    COLOR = "color"
    POST = "post"
    NEGATIVE = "negative"


class WeightStyle(Enum):
    """How fragment weights are expressed in rendered text."""
    NUMERIC = "numeric"  # (text:1.3)
    REPETITION = "repetition"  # text, text


class TrailerStyle(Enum):
    """What follows the comma-joined body."""
    CLI_MODIFIERS = "cli_modifiers"  # --ar 16:9 --s 250
    NEGATIVE_PROMPT = "negative_prompt"  # blank line, "Negative prompt: ..."
    PLAIN = "plain"


class TargetModel(Enum):
    """Image models with distinct prompt conventions."""
    MIDJOURNEY = "midjourney"
    SDXL = "sdxl"
    FLUX = "flux"
    DALLE = "dalle"

    @property
    def weight_style(self) -> WeightStyle:
        return MODEL_STYLES[self][0]

    @property
    def trailer_style(self) -> TrailerStyle:
        return MODEL_STYLES[self][1]


MODEL_STYLES = {
    TargetModel.MIDJOURNEY: (WeightStyle.REPETITION, TrailerStyle.CLI_MODIFIERS),
    TargetModel.SDXL: (WeightStyle.NUMERIC, TrailerStyle.NEGATIVE_PROMPT),
    TargetModel.FLUX: (WeightStyle.NUMERIC, TrailerStyle.NEGATIVE_PROMPT),
    TargetModel.DALLE: (WeightStyle.REPETITION, TrailerStyle.PLAIN),
}


def clamp_weight(weight: float) -> float:
    return max(MIN_WEIGHT, min(MAX_WEIGHT, weight))


def new_fragment_id() -> str:
    return uuid.uuid4().hex


@dataclass
class PromptFragment:
    """One labeled, weighted snippet of descriptive text."""
    label: str
    text: str
    category: Category
    weight: float = 1.0
    id: str = field(default_factory=new_fragment_id)

    def __post_init__(self):
        """Keep weight inside the allowed range."""
        self.weight = 1.0 if self.weight is None else clamp_weight(self.weight)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "text": self.text,
            "category": self.category.value,
            "weight": self.weight,
        }


@dataclass
class RenderParams:
    """Optional model parameters rendered as CLI-style modifiers."""
    aspect_ratio: Optional[str] = None
    stylize: Optional[float] = None
    quality: Optional[float] = None
    seed: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aspect_ratio": self.aspect_ratio,
            "stylize": self.stylize,
            "quality": self.quality,
            "seed": self.seed,
        }


@dataclass
class PromptDocument:
    """The unit of save/load and the input to compile and lint.

    Fragment order is render order.
    """
    subject: str = ""
    fragments: List[PromptFragment] = field(default_factory=list)
    negative: str = ""
    target_model: TargetModel = TargetModel.MIDJOURNEY
    render_params: RenderParams = field(default_factory=RenderParams)

    def add_fragment(self, fragment: PromptFragment) -> PromptFragment:
        self.fragments.append(fragment)
        return fragment

    def remove_fragment(self, fragment_id: str) -> bool:
        """Remove a fragment by id; returns False if no such fragment."""
        for index, fragment in enumerate(self.fragments):
            if fragment.id == fragment_id:
                del self.fragments[index]
                return True
        return False

    def set_weight(self, fragment_id: str, weight: float) -> Optional[PromptFragment]:
        """Set a fragment's weight in place, clamped to the allowed range."""
        for fragment in self.fragments:
            if fragment.id == fragment_id:
                fragment.weight = clamp_weight(weight)
                return fragment
        return None

    def fragments_in(self, category: Category) -> List[PromptFragment]:
        return [f for f in self.fragments if f.category == category]

    def reset(self) -> None:
        """Clear subject, fragments and negative text; keep model and params."""
        self.subject = ""
        self.fragments = []
        self.negative = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "fragments": [f.to_dict() for f in self.fragments],
            "negative": self.negative,
            "target_model": self.target_model.value,
            "render_params": self.render_params.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PromptDocument":
        """Build a document from its serialized form.

        Malformed or missing fields fall back to defaults instead of raising,
        so anything loaded here can always be compiled and linted.
        """
        if not isinstance(data, dict):
            return cls()

        fragments = []
        raw_fragments = data.get("fragments")
        if isinstance(raw_fragments, list):
            for raw in raw_fragments:
                if isinstance(raw, dict):
                    fragments.append(_fragment_from_dict(raw))

        return cls(
            subject=_as_text(data.get("subject")),
            fragments=fragments,
            negative=_as_text(data.get("negative")),
            target_model=_enum_or_default(TargetModel, data.get("target_model"), TargetModel.MIDJOURNEY),
            render_params=_params_from_dict(data.get("render_params")),
        )


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _enum_or_default(enum_cls, value: Any, default):
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


def _fragment_from_dict(raw: Dict[str, Any]) -> PromptFragment:
    weight = _as_number(raw.get("weight"))
    fragment_id = raw.get("id")
    return PromptFragment(
        label=_as_text(raw.get("label")),
        text=_as_text(raw.get("text")),
        category=_enum_or_default(Category, raw.get("category"), Category.SCENE),
        weight=1.0 if weight is None else weight,
        id=str(fragment_id) if fragment_id else new_fragment_id(),
    )


def _params_from_dict(raw: Any) -> RenderParams:
    if not isinstance(raw, dict):
        return RenderParams()
    aspect = raw.get("aspect_ratio")
    seed = raw.get("seed")
    return RenderParams(
        aspect_ratio=aspect if isinstance(aspect, str) and aspect else None,
        stylize=_as_number(raw.get("stylize")),
        quality=_as_number(raw.get("quality")),
        seed=str(seed) if isinstance(seed, (str, int)) and not isinstance(seed, bool) and seed != "" else None,
    )
