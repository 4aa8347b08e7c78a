"""Tests for app.services.layout."""

import pytest

from app.services.dom import parse_document
from app.services.layout import CssLength, apply_layout, calculate_layout


def _element(markup: str):
    """Parse *markup* inside a minimal document and return (element, document)."""
    document = parse_document(f"<html><head></head><body>{markup}</body></html>")
    return document.body.contents[0], document


# ---------------------------------------------------------------------------
# CssLength
# ---------------------------------------------------------------------------

class TestCssLength:
    def test_absent_is_valid_and_unset(self):
        length = CssLength(None)
        assert length.is_valid
        assert not length.is_set

    def test_plain_number_defaults_to_px(self):
        length = CssLength("42")
        assert length.is_valid
        assert length.numeral == 42
        assert length.unit == "px"

    @pytest.mark.parametrize("unit", ["px", "em", "rem", "vh", "vw", "vmin", "vmax"])
    def test_supported_units(self, unit):
        length = CssLength(f"1.5{unit}")
        assert length.is_valid
        assert length.unit == unit
        assert str(length) == f"1.5{unit}"

    def test_auto_requires_permission(self):
        assert not CssLength("auto").is_valid
        assert CssLength("auto", allow_auto=True).is_auto

    def test_fluid_requires_permission(self):
        assert not CssLength("fluid").is_valid
        assert CssLength("fluid", allow_fluid=True).is_fluid

    @pytest.mark.parametrize("value", ["abc", "10%", "-5", "10 px", ""])
    def test_invalid_values(self, value):
        assert not CssLength(value).is_valid

    def test_integral_value_renders_without_decimal(self):
        assert str(CssLength("10.0")) == "10px"

    @pytest.mark.parametrize("value", ["10\n", "10px\n", " 10", "10 "])
    def test_surrounding_whitespace_is_invalid(self, value):
        assert not CssLength(value).is_valid

    def test_long_fraction_is_rounded(self):
        assert str(CssLength("10.123456")) == "10.1235px"


# ---------------------------------------------------------------------------
# Layout inference
# ---------------------------------------------------------------------------

class TestCalculateLayout:
    def test_declared_layout_wins(self):
        assert calculate_layout("fill", CssLength("1"), CssLength("1"), None, None) == "fill"

    def test_no_dimensions_is_container(self):
        assert calculate_layout("", CssLength(None), CssLength(None), None, None) == "container"

    def test_height_only_is_fixed_height(self):
        assert calculate_layout("", CssLength(None), CssLength("50"), None, None) == "fixed-height"

    def test_auto_width_is_fixed_height(self):
        width = CssLength("auto", allow_auto=True)
        assert calculate_layout("", width, CssLength("50"), None, None) == "fixed-height"

    def test_sizes_makes_responsive(self):
        assert calculate_layout("", CssLength("4"), CssLength("3"), "100vw", None) == "responsive"

    def test_both_dimensions_is_fixed(self):
        assert calculate_layout("", CssLength("4"), CssLength("3"), None, None) == "fixed"


# ---------------------------------------------------------------------------
# apply_layout
# ---------------------------------------------------------------------------

class TestApplyLayout:
    def test_fixed(self):
        node, document = _element('<amp-img layout="fixed" width="10" height="20"></amp-img>')
        assert apply_layout(node, document)
        assert node["class"] == "i-amphtml-layout-fixed i-amphtml-layout-size-defined"
        assert node["style"] == "width:10px;height:20px;"
        assert node["i-amphtml-layout"] == "fixed"

    def test_inferred_fixed_with_units(self):
        node, document = _element('<amp-img width="10em" height="5.5em"></amp-img>')
        assert apply_layout(node, document)
        assert node["i-amphtml-layout"] == "fixed"
        assert node["style"] == "width:10em;height:5.5em;"

    def test_existing_class_and_style_are_kept(self):
        node, document = _element(
            '<amp-img class="hero" style="color:red" layout="fixed" width="10" height="10"></amp-img>'
        )
        assert apply_layout(node, document)
        assert node["class"] == "hero i-amphtml-layout-fixed i-amphtml-layout-size-defined"
        assert node["style"] == "width:10px;height:10px;color:red"

    def test_fixed_height(self):
        node, document = _element('<amp-carousel height="300"></amp-carousel>')
        assert apply_layout(node, document)
        assert node["i-amphtml-layout"] == "fixed-height"
        assert node["style"] == "height:300px;"

    def test_responsive_adds_sizer(self):
        node, document = _element('<amp-img layout="responsive" width="1600" height="900"></amp-img>')
        assert apply_layout(node, document)
        sizer = node.contents[0]
        assert sizer.name == "i-amphtml-sizer"
        assert sizer["style"] == "display:block;padding-top:56.25%;"
        assert "style" not in node.attrs

    def test_responsive_square_padding(self):
        node, document = _element('<amp-img layout="responsive" width="300" height="300"></amp-img>')
        assert apply_layout(node, document)
        assert node.contents[0]["style"] == "display:block;padding-top:100%;"

    def test_responsive_tall_ratio_has_no_exponent(self):
        node, document = _element(
            '<amp-img layout="responsive" width="3" height="100000000000000000000000"></amp-img>'
        )
        assert apply_layout(node, document)
        style = node.contents[0]["style"]
        assert "e+" not in style
        assert style.startswith("display:block;padding-top:3333333333")
        assert style.endswith("%;")

    def test_responsive_flat_ratio_rounds_to_zero(self):
        node, document = _element('<amp-img layout="responsive" width="100000000" height="1"></amp-img>')
        assert apply_layout(node, document)
        assert node.contents[0]["style"] == "display:block;padding-top:0%;"

    def test_responsive_ratio_keeps_four_decimals(self):
        node, document = _element('<amp-img layout="responsive" width="3" height="1"></amp-img>')
        assert apply_layout(node, document)
        assert node.contents[0]["style"] == "display:block;padding-top:33.3333%;"

    def test_responsive_sizer_goes_before_existing_children(self):
        node, document = _element(
            '<amp-img layout="responsive" width="2" height="1"><div placeholder></div></amp-img>'
        )
        assert apply_layout(node, document)
        assert [child.name for child in node.contents] == ["i-amphtml-sizer", "div"]

    def test_responsive_mixed_units_has_no_sizer(self):
        node, document = _element('<amp-img layout="responsive" width="10em" height="10"></amp-img>')
        assert apply_layout(node, document)
        assert node.contents == []

    def test_container(self):
        node, document = _element("<amp-accordion></amp-accordion>")
        assert apply_layout(node, document)
        assert node["class"] == "i-amphtml-layout-container"
        assert "style" not in node.attrs

    def test_nodisplay(self):
        node, document = _element('<amp-lightbox layout="nodisplay"></amp-lightbox>')
        assert apply_layout(node, document)
        assert node["hidden"] == "hidden"
        assert node["class"] == "i-amphtml-layout-nodisplay"

    def test_fill(self):
        node, document = _element('<amp-img layout="fill"></amp-img>')
        assert apply_layout(node, document)
        assert node["class"] == "i-amphtml-layout-fill i-amphtml-layout-size-defined"

    def test_flex_item_with_width_only(self):
        node, document = _element('<amp-img layout="flex-item" width="40"></amp-img>')
        assert apply_layout(node, document)
        assert node["style"] == "width:40px;"

    def test_layout_keyword_is_case_insensitive(self):
        node, document = _element('<amp-img layout="FIXED" width="1" height="1"></amp-img>')
        assert apply_layout(node, document)
        assert node["i-amphtml-layout"] == "fixed"

    def test_pixel_defaults_to_one_by_one(self):
        node, document = _element('<amp-pixel src="https://example.com/p"></amp-pixel>')
        assert apply_layout(node, document)
        assert node["i-amphtml-layout"] == "fixed"
        assert node["style"] == "width:1px;height:1px;"


class TestApplyLayoutFailures:
    @pytest.mark.parametrize(
        "markup",
        [
            '<amp-img layout="fixed" width="abc" height="10"></amp-img>',
            '<amp-img layout="fixed" width="10" height="auto"></amp-img>',
            '<amp-img layout="fixed" width="10"></amp-img>',
            '<amp-img layout="responsive" height="10"></amp-img>',
            '<amp-img layout="fixed-height" width="10" height="10"></amp-img>',
            '<amp-img layout="intrinsic" width="10" height="10"></amp-img>',
            '<amp-img layout="fluid" height="fluid"></amp-img>',
            '<amp-img height="fluid" width="auto"></amp-img>',
            '<amp-img layout="bogus" width="10" height="10"></amp-img>',
        ],
    )
    def test_unresolvable_layout_leaves_node_untouched(self, markup):
        node, document = _element(markup)
        before = dict(node.attrs)

        assert not apply_layout(node, document)
        assert node.attrs == before
        assert node.contents == []
