"""
test_labels.py - label dictionaries and display helpers.

The dictionaries are stored-data compatibility tables: the exact strings are
asserted, not just their presence.
"""

import pytest

from labels import (
    LabelDictionary,
    area_text,
    feature_list,
    format_date,
    label_for,
    label_or_empty,
    quantity_text,
    size_text,
)


class TestLabelFor:

    @pytest.mark.parametrize("code, expected", [
        ("vinyl", "ПВХ (Винил)"),
        ("aluminum", "Алюминий"),
        ("wooden", "Дерево"),
        ("fiberglass", "Стекловолокно"),
        ("composite", "Композитный материал"),
    ])
    def test_material_labels(self, code, expected):
        assert label_for("material", code) == expected

    @pytest.mark.parametrize("code, expected", [
        ("standard", "Стандартное"),
        ("casement", "Створчатое"),
        ("sliding", "Раздвижное"),
        ("awning", "Откидное"),
        ("bay-window", "Эркерное"),
        ("picture-window", "Панорамное"),
    ])
    def test_window_type_labels(self, code, expected):
        assert label_for(LabelDictionary.WINDOW_TYPE, code) == expected

    def test_glazing_and_feature_labels(self):
        assert label_for("glazing", "low-e") == "Энергосберегающее"
        assert label_for("glazing", "triple") == "Тройное"
        assert label_for("feature", "security-glass") == "Ударопрочное стекло"
        assert label_for("feature", "uv-protection") == "UV-защита"

    def test_status_labels(self):
        assert label_for("status", "processing") == "В обработке"
        assert label_for("status", "rejected") == "Отклонена"

    def test_unknown_code_passes_through(self):
        assert label_for("material", "unknown-code") == "unknown-code"
        assert label_for("feature", "heated") == "heated"

    def test_unknown_dictionary_rejected(self):
        with pytest.raises(ValueError):
            label_for("colour", "white")

    def test_label_or_empty(self):
        assert label_or_empty("glazing", None) == "-"
        assert label_or_empty("glazing", "double") == "Двойное"


class TestDisplayHelpers:

    def test_feature_list_joins_labels(self):
        assert feature_list(["uv-protection", "tinted"]) == "UV-защита, Тонировка"
        assert feature_list([]) == "-"
        assert feature_list(None) == "-"

    def test_size_drops_trailing_zero(self):
        assert size_text(150.0, 180) == "150 × 180 см"
        assert size_text(None, 180) == "-"

    def test_area_and_quantity(self):
        assert area_text("2.70") == "2.70 м²"
        assert area_text(None) == "-"
        assert quantity_text(2) == "2 шт."
        assert quantity_text(None) == "-"

    def test_format_date(self):
        assert format_date("2024-05-01T09:30:15.000Z") == "01.05.2024, 09:30"
        assert format_date("2024-05-01T09:30:15.000Z", with_seconds=True) == "01.05.2024, 09:30:15"
        assert format_date("not a date") == "not a date"
        assert format_date("") == "-"
