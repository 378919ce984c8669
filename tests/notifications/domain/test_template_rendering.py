"""Tests for `{{variable}}` template rendering."""

from notifications.template.rendering import get_required_variables, preview, render_message, validate_variables

TEMPLATE = "Halo {{customerName}}, pesanan {{orderNumber}} sebesar {{grandTotal}}. Terima kasih {{customerName}}!"


class TestRenderMessage:
    def test_substitutes_every_occurrence(self):
        rendered = render_message(TEMPLATE, {"customerName": "Ani", "orderNumber": "0abc", "grandTotal": "Rp10.000"})
        assert rendered == "Halo Ani, pesanan 0abc sebesar Rp10.000. Terima kasih Ani!"

    def test_missing_placeholders_are_left_in_place(self):
        assert render_message("Hi {{name}} {{other}}", {"name": "Budi"}) == "Hi Budi {{other}}"

    def test_none_value_counts_as_missing(self):
        assert render_message("Hi {{name}}", {"name": None}) == "Hi {{name}}"

    def test_values_are_stringified(self):
        assert render_message("Total {{n}}", {"n": 12}) == "Total 12"

    def test_single_braces_are_not_placeholders(self):
        assert render_message("{name} {{ name }}", {"name": "x"}) == "{name} {{ name }}"


class TestRequiredVariables:
    def test_distinct_in_order_of_first_appearance(self):
        assert get_required_variables(TEMPLATE) == ["customerName", "orderNumber", "grandTotal"]

    def test_no_placeholders(self):
        assert get_required_variables("Plain text") == []

    def test_validate_reports_missing(self):
        check = validate_variables(TEMPLATE, {"customerName": "Ani"})
        assert not check.is_valid
        assert check.missing_variables == ["orderNumber", "grandTotal"]

    def test_validate_with_everything_provided(self):
        check = validate_variables("Hi {{a}}", {"a": "1", "extra": "ignored"})
        assert check.is_valid
        assert check.missing_variables == []


class TestPreview:
    def test_preview_renders_when_complete(self):
        assert preview("Hi {{a}}", {"a": "Ani"}) == {"success": True, "rendered_message": "Hi Ani"}

    def test_preview_reports_missing_instead_of_rendering(self):
        assert preview("Hi {{a}} {{b}}", {"a": "Ani"}) == {"success": False, "missing_variables": ["b"]}
