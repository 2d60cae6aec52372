from decimal import Decimal

from models import DEFAULT_SETTINGS, ProjectInputs, ProjectType, Settings
from models.client import client_from_row, dump_tags, load_tags, parse_tags


def test_as_columns_clears_fixed_price_fields_for_frontend():
    inputs = ProjectInputs(project_type=ProjectType.FRONTEND, total_pages=3, completed_pages=1,
                           price_per_page=Decimal("20"), fixed_price=Decimal("500"),
                           completion_percentage=30)
    columns = inputs.as_columns()

    assert columns["project_type"] == "frontend"
    assert columns["total_pages"] == 3
    assert columns["fixed_price"] is None
    assert columns["completion_percentage"] is None
    assert columns["extra_hours"] == Decimal("0")


def test_as_columns_clears_page_fields_for_fixed_price():
    inputs = ProjectInputs(project_type=ProjectType.FULLSTACK, total_pages=3, completed_pages=1,
                           price_per_page=Decimal("20"), fixed_price=Decimal("500"),
                           completion_percentage=30, extra_hour_rate=Decimal("75"))
    columns = inputs.as_columns()

    assert columns["total_pages"] is None
    assert columns["completed_pages"] is None
    assert columns["price_per_page"] is None
    assert columns["fixed_price"] == Decimal("500")
    assert columns["extra_hour_rate"] == Decimal("75")


def test_from_row_reads_project_columns():
    inputs = ProjectInputs.from_row({"project_type": "backend", "fixed_price": Decimal("10"),
                                     "completion_percentage": 50})
    assert inputs.project_type == ProjectType.BACKEND
    assert inputs.fixed_price == Decimal("10")
    assert inputs.total_pages is None


def test_parse_tags():
    assert parse_tags("web, e-commerce ,  , web") == ["web", "e-commerce"]
    assert parse_tags("") == []
    assert parse_tags(None) == []


def test_tags_json_roundtrip_keeps_unicode():
    stored = dump_tags(["mağaza"])
    assert "mağaza" in stored
    assert load_tags(stored) == ["mağaza"]


def test_load_tags_tolerates_bad_values():
    assert load_tags(None) == []
    assert load_tags("not json") == []
    assert load_tags('{"a": 1}') == []


def test_client_from_row_decodes_tags():
    client = client_from_row({"id": 1, "name": "Acme", "tags": '["a", "b"]'})
    assert client["tags"] == ["a", "b"]


def test_settings_from_rows():
    settings = Settings.from_rows([
        {"key": "default_price_per_page", "value": "250.50"},
        {"key": "currency", "value": "EUR"},
        {"key": "language", "value": ""},
        {"key": "tax_rate", "value": "abc"},
        {"key": "unknown", "value": "x"},
    ])
    assert settings.default_price_per_page == Decimal("250.50")
    assert settings.currency == "EUR"
    assert settings.language == DEFAULT_SETTINGS["language"]
    assert settings.tax_rate == Decimal("0")
    assert settings.default_fixed_price == Decimal("0")


def test_settings_defaults_cover_every_field():
    assert set(DEFAULT_SETTINGS) == set(vars(Settings()))
