"""
Curated fragment presets.

Each category carries a handful of ready-made fragments plus the hints used
to seed vocabulary discovery for it (topics, search term, flavors).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .discovery import Flavor, WordCandidate
from .document import Category, PromptFragment


@dataclass(frozen=True)
class Preset:
    """A ready-made fragment."""
    label: str
    text: str
    description: str = ""
    weight: Optional[float] = None


@dataclass(frozen=True)
class LibraryCategory:
    """Presets and discovery hints for one category."""
    category: Category
    label: str
    topics: str
    search_term: str
    presets: Tuple[Preset, ...]


LIBRARY: List[LibraryCategory] = [
    LibraryCategory(Category.STYLE, "Art & Aesthetic", "art,design,illustration", "art style", (
        Preset("Cyberpunk", "cyberpunk aesthetic", "Neon, high-tech, low-life"),
        Preset("Ukiyo-e", "ukiyo-e woodblock style", "Flat perspective, woodblock texture"),
        Preset("Isometric", "isometric 3D render", "Parallel projection, clean geometry"),
        Preset("Watercolor", "watercolor painting", "Soft bleeding pigments, paper grain"),
        Preset("Film Noir", "film noir style", "High-contrast, moody shadows"),
        Preset("Storybook Anime", "whimsical hand-drawn anime style", "Lush, warm, storybook"),
        Preset("Baroque", "baroque painting", "Ornate, dramatic contrast"),
        Preset("Photoreal", "ultra photoreal", "High fidelity realism", 1.2),
        Preset("Vintage", "vintage color grading", "Faded film look"),
    )),
    LibraryCategory(Category.LIGHTING, "Lighting", "cinematography,photography,lighting", "lighting", (
        Preset("Golden Hour", "golden hour sunlight", "Warm, soft sun", 1.1),
        Preset("Cinematic", "cinematic lighting", "Movie-like contrast"),
        Preset("Volumetric", "volumetric god rays", "Visible light beams"),
        Preset("Softbox", "softbox studio lighting", "Diffused, even light"),
        Preset("Chiaroscuro", "chiaroscuro", "Strong light-dark contrast"),
        Preset("Neon Rim", "neon rim lighting", "Bright edge separation"),
    )),
    LibraryCategory(Category.CAMERA, "Camera & Lens", "photography,camera,lens", "camera lens", (
        Preset("35mm", "35mm lens", "Natural perspective"),
        Preset("85mm", "85mm portrait lens", "Flattering compression"),
        Preset("Macro", "macro shot", "Extreme close-up details"),
        Preset("Wide", "wide angle lens", "Expansive framing"),
        Preset("Drone", "drone aerial view", "High perspective"),
        Preset("Shallow DoF", "shallow depth of field, bokeh", "Subject pop"),
    )),
    LibraryCategory(Category.COMPOSITION, "Composition", "composition,photography,design", "composition", (
        Preset("Rule of Thirds", "rule of thirds composition", "Balanced framing"),
        Preset("Centered", "centered composition", "Iconic symmetry"),
        Preset("Leading Lines", "leading lines", "Guides the eye"),
        Preset("Foreground Interest", "foreground elements for depth", "Layered scene"),
        Preset("Negative Space", "strong negative space", "Minimal breathing room"),
    )),
    LibraryCategory(Category.MOOD, "Mood & Tone", "mood,emotion,atmosphere", "mood", (
        Preset("Ethereal", "ethereal atmosphere", "Light, heavenly"),
        Preset("Ominous", "ominous atmosphere", "Threatening, dark"),
        Preset("Serene", "serene atmosphere", "Calm, peaceful"),
        Preset("Whimsical", "whimsical tone", "Playful, magical"),
        Preset("Melancholic", "melancholic mood", "Quiet, pensive"),
    )),
    LibraryCategory(Category.MATERIALS, "Materials", "materials,texture,surfaces", "material texture", (
        Preset("Obsidian", "obsidian surface, glossy black", "Volcanic glass"),
        Preset("Porcelain", "porcelain texture, fine cracks", "Ceramic smoothness"),
        Preset("Brushed Metal", "brushed metal, subtle scratches", "Industrial finish"),
        Preset("Crystal", "crystalline structure, refraction", "Light splitting"),
        Preset("Smoke", "wisps of smoke, translucent", "Gaseous forms"),
    )),
    LibraryCategory(Category.COLOR, "Color & Grade", "color,grading,cinema", "color palette", (
        Preset("Teal & Orange", "teal and orange color grading", "Blockbuster look"),
        Preset("Monochrome", "black and white, monochrome", "Noir vibe"),
        Preset("Pastel", "soft pastel palette", "Gentle colors"),
        Preset("High Saturation", "high saturation, vibrant colors", "Punchy look"),
    )),
    LibraryCategory(Category.SCENE, "Scene & World", "landscape,architecture,environment", "environment", (
        Preset("Desert", "in a vast desert landscape", "Sand, heat haze"),
        Preset("Rainy City", "rain-soaked city streets", "Reflections, wet asphalt"),
        Preset("Fog", "dense fog, atmospheric perspective", "Mystery depth"),
        Preset("Ancient Ruins", "ancient ruins, weathered stone", "History and decay"),
    )),
    LibraryCategory(Category.POST, "Post & Detail", "detail,render,texture", "high detail", (
        Preset("Ultra Detail", "intricate detail, sharp textures", "Micro detail", 1.2),
        Preset("Film Grain", "subtle film grain", "Analog texture"),
        Preset("HDR", "HDR, high dynamic range", "Punchy highlights"),
        Preset("Motion Blur", "cinematic motion blur", "Action feel"),
    )),
]

_ML_TRG = (Flavor.MEANS_LIKE, Flavor.TRIGGER)
_ML_TRG_ADJ = (Flavor.MEANS_LIKE, Flavor.TRIGGER, Flavor.ADJECTIVE)
_ML_TRG_SYN = (Flavor.MEANS_LIKE, Flavor.TRIGGER, Flavor.SYNONYM)

# Default discovery flavors per category
CATEGORY_FLAVORS: Dict[Category, Tuple[Flavor, ...]] = {
    Category.SUBJECT: _ML_TRG,
    Category.SCENE: _ML_TRG_ADJ,
    Category.STYLE: _ML_TRG_SYN,
    Category.COMPOSITION: _ML_TRG,
    Category.LIGHTING: _ML_TRG_ADJ,
    Category.CAMERA: _ML_TRG,
    Category.MOOD: _ML_TRG_SYN,
    Category.MATERIALS: _ML_TRG_ADJ,
    Category.COLOR: _ML_TRG,
    Category.POST: _ML_TRG_ADJ,
    Category.NEGATIVE: _ML_TRG,
}


def library_for(category: Category) -> Optional[LibraryCategory]:
    for entry in LIBRARY:
        if entry.category == category:
            return entry
    return None


def fragment_from_preset(category: Category, preset: Preset) -> PromptFragment:
    """New fragment for an accepted preset."""
    return PromptFragment(
        label=preset.label,
        text=preset.text,
        category=category,
        weight=preset.weight if preset.weight is not None else 1.0,
    )


def fragment_from_candidate(category: Category, candidate: WordCandidate) -> PromptFragment:
    """New fragment for an accepted discovery suggestion."""
    return PromptFragment(label=candidate.text, text=candidate.text, category=category)
