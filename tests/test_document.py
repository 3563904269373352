"""
Tests for the prompt document model.
"""
import pytest

from volcano_studio.core.document import (
    Category,
    PromptDocument,
    PromptFragment,
    RenderParams,
    TargetModel,
    TrailerStyle,
    WeightStyle,
)


class TestFragment:
    """Test fragment construction."""

    def test_defaults(self):
        fragment = PromptFragment("Ash", "falling ash", Category.MOOD)
        assert fragment.weight == 1.0
        assert fragment.id

    def test_ids_unique(self):
        a = PromptFragment("A", "a", Category.MOOD)
        b = PromptFragment("A", "a", Category.MOOD)
        assert a.id != b.id

    def test_weight_clamped(self):
        assert PromptFragment("A", "a", Category.MOOD, weight=9).weight == 2.0
        assert PromptFragment("A", "a", Category.MOOD, weight=0).weight == 0.2


class TestDocumentEditing:
    """Test in-place edits."""

    def setup_method(self):
        self.doc = PromptDocument(subject="a volcano")
        self.fragment = self.doc.add_fragment(PromptFragment("Light", "rim light", Category.LIGHTING))

    def test_set_weight_clamps(self):
        updated = self.doc.set_weight(self.fragment.id, 3.5)
        assert updated is self.fragment
        assert self.fragment.weight == 2.0

    def test_set_weight_unknown_id(self):
        assert self.doc.set_weight("missing", 1.2) is None

    def test_remove_fragment(self):
        assert self.doc.remove_fragment(self.fragment.id)
        assert self.doc.fragments == []
        assert not self.doc.remove_fragment(self.fragment.id)

    def test_fragments_in(self):
        self.doc.add_fragment(PromptFragment("Cam", "35mm", Category.CAMERA))
        assert [f.text for f in self.doc.fragments_in(Category.CAMERA)] == ["35mm"]

    def test_reset_keeps_model_and_params(self):
        self.doc.target_model = TargetModel.FLUX
        self.doc.render_params = RenderParams(seed="9")
        self.doc.negative = "blur"

        self.doc.reset()

        assert self.doc.subject == ""
        assert self.doc.fragments == []
        assert self.doc.negative == ""
        assert self.doc.target_model is TargetModel.FLUX
        assert self.doc.render_params.seed == "9"


class TestStyleFamilies:
    """Test the model style table."""

    @pytest.mark.parametrize("model,weight,trailer", [
        (TargetModel.MIDJOURNEY, WeightStyle.REPETITION, TrailerStyle.CLI_MODIFIERS),
        (TargetModel.SDXL, WeightStyle.NUMERIC, TrailerStyle.NEGATIVE_PROMPT),
        (TargetModel.FLUX, WeightStyle.NUMERIC, TrailerStyle.NEGATIVE_PROMPT),
        (TargetModel.DALLE, WeightStyle.REPETITION, TrailerStyle.PLAIN),
    ])
    def test_styles(self, model, weight, trailer):
        assert model.weight_style is weight
        assert model.trailer_style is trailer


class TestFromDict:
    """Test lenient deserialization."""

    def test_not_a_dict(self):
        assert PromptDocument.from_dict(None) == PromptDocument()
        assert PromptDocument.from_dict(["x"]) == PromptDocument()

    def test_malformed_fields_fall_back(self):
        doc = PromptDocument.from_dict({
            "subject": 42,
            "negative": None,
            "target_model": "unknown-model",
            "render_params": {"aspect_ratio": 3, "stylize": "high", "quality": True, "seed": 77},
            "fragments": [
                {"label": "A", "text": "ash", "category": "nope", "weight": "heavy"},
                {"label": "B", "text": ["bad"], "category": "CAMERA", "weight": 1.4, "id": "frag-b"},
                "garbage",
            ],
        })

        assert doc.subject == ""
        assert doc.negative == ""
        assert doc.target_model is TargetModel.MIDJOURNEY
        assert doc.render_params == RenderParams(seed="77")
        assert len(doc.fragments) == 2
        assert doc.fragments[0].category is Category.SCENE
        assert doc.fragments[0].weight == 1.0
        assert doc.fragments[1].text == ""
        assert doc.fragments[1].category is Category.CAMERA
        assert doc.fragments[1].id == "frag-b"

    def test_to_dict_shape(self):
        doc = PromptDocument(subject="s", target_model=TargetModel.DALLE)
        data = doc.to_dict()
        assert data["target_model"] == "dalle"
        assert set(data["render_params"]) == {"aspect_ratio", "stylize", "quality", "seed"}
