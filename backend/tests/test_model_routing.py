"""
Layer 1: Model routing unit tests

These tests validate model selection, payload shaping and response parsing
without touching the network.
"""
import pytest

from models.image_edit import GenerateEditRequest, SegmentPoint, StyleHints
from services.model_routing import (
    CLARITY_UPSCALER,
    DEFAULT_EDIT_MODEL,
    EDIT_RESULT_FIELDS,
    ERASE_RESULT_FIELDS,
    FAST_SDXL_INPAINTING,
    FLUX_2_PRO_EDIT,
    FLUX_GENERAL_INPAINTING,
    MULTI_IMAGE_MODELS,
    NANO_BANANA_PRO_EDIT,
    REMBG,
    SAM2_SEGMENTATION,
    SEGMENT_RESULT_FIELDS,
    MultiImageEditInput,
    Operation,
    SingleImageEditInput,
    build_edit_input,
    build_erase_input,
    build_inpaint_input,
    build_segmentation_input,
    build_utility_input,
    enrich_prompt,
    find_result_url,
    operation_for,
    resolve_image_size,
    select_model,
)


@pytest.mark.unit
@pytest.mark.parametrize("preset,expected", [
    ("square_hd", {"width": 1024, "height": 1024}),
    ("square", {"width": 512, "height": 512}),
    ("portrait_4_3", {"width": 768, "height": 1024}),
    ("portrait_16_9", {"width": 576, "height": 1024}),
    ("landscape_4_3", {"width": 1024, "height": 768}),
    ("landscape_16_9", {"width": 1024, "height": 576}),
])
def test_size_presets_map_to_fixed_dimensions(preset, expected):
    assert resolve_image_size(preset) == expected


@pytest.mark.unit
@pytest.mark.parametrize("preset", ["", None, "huge", "SQUARE_HD", "portrait_3_2"])
def test_unknown_size_presets_are_ignored(preset):
    assert resolve_image_size(preset) is None


@pytest.mark.unit
def test_unknown_size_preset_sends_no_image_size():
    request = GenerateEditRequest(image_urls=["https://img.test/a.png"], prompt="a cat", size="poster")

    arguments = build_edit_input(DEFAULT_EDIT_MODEL, request).to_arguments()

    assert "image_size" not in arguments


@pytest.mark.unit
class TestPromptEnrichment:
    """Tests for the style details clause"""

    def test_lighting_and_quality(self):
        style = StyleHints(lighting="soft", quality="high")
        assert enrich_prompt("a cat", style) == "a cat . Style details: soft lighting, high quality."

    def test_fixed_order_regardless_of_input(self):
        style = StyleHints(orientation="portrait", sharpness="crisp", quality="high", lighting="warm")
        assert enrich_prompt("a dog", style) == (
            "a dog . Style details: warm lighting, high quality, crisp sharpness, portrait orientation."
        )

    def test_absent_hints_are_omitted(self):
        style = StyleHints(sharpness="crisp")
        assert enrich_prompt("a dog", style) == "a dog . Style details: crisp sharpness."

    def test_no_hints_keeps_prompt(self):
        assert enrich_prompt("a dog") == "a dog"
        assert enrich_prompt("a dog", StyleHints()) == "a dog"


@pytest.mark.unit
class TestModelSelection:
    """Tests for the ordered selection rules"""

    def test_edit_without_override_uses_default(self):
        assert select_model(Operation.EDIT) == DEFAULT_EDIT_MODEL

    def test_edit_keeps_any_override(self):
        assert select_model(Operation.EDIT, "fal-ai/some-other/model") == "fal-ai/some-other/model"

    def test_inpaint_without_override_uses_dedicated_inpainter(self):
        assert select_model(Operation.INPAINT) == FAST_SDXL_INPAINTING
        assert select_model(Operation.INPAINT) != DEFAULT_EDIT_MODEL

    @pytest.mark.parametrize("override", [DEFAULT_EDIT_MODEL, FLUX_2_PRO_EDIT, FLUX_GENERAL_INPAINTING, "fal-ai/x"])
    def test_inpaint_replaces_other_overrides(self, override):
        assert select_model(Operation.INPAINT, override) == FAST_SDXL_INPAINTING

    def test_inpaint_preserves_mask_capable_override(self):
        assert select_model(Operation.INPAINT, NANO_BANANA_PRO_EDIT) == NANO_BANANA_PRO_EDIT

    @pytest.mark.parametrize("operation,model", [
        (Operation.SEGMENT, SAM2_SEGMENTATION),
        (Operation.ERASE, FLUX_GENERAL_INPAINTING),
        (Operation.REMOVE_BACKGROUND, REMBG),
        (Operation.UPSCALE, CLARITY_UPSCALER),
    ])
    def test_fixed_operations(self, operation, model):
        assert select_model(operation, "ignored/override") == model

    def test_mask_means_inpaint(self):
        plain = GenerateEditRequest(image_urls=["https://img.test/a.png"], prompt="x")
        masked = GenerateEditRequest(image_urls=["https://img.test/a.png"], prompt="x", mask_url="https://img.test/m.png")

        assert operation_for(plain) is Operation.EDIT
        assert operation_for(masked) is Operation.INPAINT


@pytest.mark.unit
class TestModelInputs:
    """Tests for payload shaping per model family"""

    def test_multi_image_model_gets_all_images(self):
        urls = ["https://img.test/a.png", "https://img.test/b.png"]
        request = GenerateEditRequest(image_urls=urls, prompt="merge", size="square")

        model_input = build_edit_input(DEFAULT_EDIT_MODEL, request)

        assert DEFAULT_EDIT_MODEL in MULTI_IMAGE_MODELS
        assert isinstance(model_input, MultiImageEditInput)
        assert model_input.to_arguments() == {
            "prompt": "merge",
            "image_urls": urls,
            "image_size": {"width": 512, "height": 512},
        }

    def test_single_image_model_gets_first_image_and_strength(self):
        request = GenerateEditRequest(
            image_urls=["https://img.test/a.png", "https://img.test/b.png"],
            prompt="paint it",
            style=StyleHints(quality="high")
        )

        model_input = build_edit_input("fal-ai/flux/dev/image-to-image", request)

        assert isinstance(model_input, SingleImageEditInput)
        assert model_input.to_arguments() == {
            "prompt": "paint it . Style details: high quality.",
            "image_url": "https://img.test/a.png",
            "strength": 0.85,
        }

    def test_inpaint_payload(self):
        arguments = build_inpaint_input("https://img.test/a.png", "https://img.test/m.png", "red apple").to_arguments()

        assert arguments == {
            "prompt": "red apple",
            "image_url": "https://img.test/a.png",
            "mask_url": "https://img.test/m.png",
            "strength": 1.0,
        }

    def test_erase_payload_is_fixed(self):
        arguments = build_erase_input("https://img.test/a.png", "https://img.test/m.png").to_arguments()

        assert arguments["strength"] == 1.0
        assert arguments["guidance_scale"] == 3.5
        assert "seamless removal" in arguments["prompt"]

    def test_segmentation_points_are_foreground(self):
        points = [SegmentPoint(x=10, y=20), SegmentPoint(x=30.5, y=40)]

        arguments = build_segmentation_input("https://img.test/a.png", points).to_arguments()

        assert arguments["image_url"] == "https://img.test/a.png"
        assert arguments["prompts"] == [
            {"type": "point", "x": 10, "y": 20, "label": "1"},
            {"type": "point", "x": 30.5, "y": 40, "label": "1"},
        ]

    def test_utility_payload_omits_unset_factor(self):
        assert build_utility_input("https://img.test/a.png").to_arguments() == {"image_url": "https://img.test/a.png"}
        assert build_utility_input("https://img.test/a.png", 4).to_arguments() == {
            "image_url": "https://img.test/a.png",
            "upscale_factor": 4,
        }


@pytest.mark.unit
class TestResultParsing:
    """Tests for defensive response field lookup"""

    def test_edit_reads_first_image(self):
        data = {"images": [{"url": "X"}, {"url": "Y"}]}
        assert find_result_url(data, EDIT_RESULT_FIELDS) == "X"

    def test_edit_falls_back_to_single_image(self):
        assert find_result_url({"image": {"url": "Z"}}, EDIT_RESULT_FIELDS) == "Z"

    @pytest.mark.parametrize("data", [{}, {"images": []}, {"images": [{}]}, {"image": None}, None, "oops"])
    def test_no_recognized_field(self, data):
        assert find_result_url(data, EDIT_RESULT_FIELDS) is None

    def test_segment_prefers_image_over_mask(self):
        data = {"image": {"url": "image"}, "mask": {"url": "mask"}, "masks": [{"url": "masks"}]}
        assert find_result_url(data, SEGMENT_RESULT_FIELDS) == "image"

    def test_segment_mask_then_mask_list(self):
        assert find_result_url({"mask": {"url": "mask"}, "masks": [{"url": "m0"}]}, SEGMENT_RESULT_FIELDS) == "mask"
        assert find_result_url({"masks": [{"url": "m0"}, {"url": "m1"}]}, SEGMENT_RESULT_FIELDS) == "m0"

    def test_erase_prefers_single_image(self):
        data = {"images": [{"url": "list"}], "image": {"url": "single"}}
        assert find_result_url(data, ERASE_RESULT_FIELDS) == "single"
        assert find_result_url({"images": [{"url": "list"}]}, ERASE_RESULT_FIELDS) == "list"
