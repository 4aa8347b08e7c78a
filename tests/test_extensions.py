"""Tests for app.services.extensions."""

from app.services.dom import parse_document
from app.services.extensions import is_custom_element, is_render_delaying_extension


def _first(markup: str):
    document = parse_document(f"<html><head>{markup}</head><body></body></html>")
    return document.head.contents[0]


class TestIsCustomElement:
    def test_amp_tag(self):
        assert is_custom_element(_first("<amp-img></amp-img>"))

    def test_plain_tag(self):
        assert not is_custom_element(_first("<div></div>"))

    def test_sizer_is_not_custom(self):
        assert not is_custom_element(_first("<i-amphtml-sizer></i-amphtml-sizer>"))

    def test_text_node(self):
        assert not is_custom_element(_first("amp-img"))


class TestIsRenderDelayingExtension:
    def test_story_script(self):
        assert is_render_delaying_extension(_first('<script custom-element="amp-story"></script>'))

    def test_experiment_script(self):
        assert is_render_delaying_extension(
            _first('<script custom-element="amp-experiment"></script>')
        )

    def test_dynamic_css_classes_script(self):
        assert is_render_delaying_extension(
            _first('<script custom-element="amp-dynamic-css-classes"></script>')
        )

    def test_other_extension(self):
        assert not is_render_delaying_extension(_first('<script custom-element="amp-bind"></script>'))

    def test_runtime_script(self):
        assert not is_render_delaying_extension(
            _first('<script async src="https://cdn.ampproject.org/v0.js"></script>')
        )

    def test_non_script_with_attribute(self):
        assert not is_render_delaying_extension(_first('<link custom-element="amp-story">'))
