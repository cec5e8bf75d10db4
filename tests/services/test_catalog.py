"""Tests for catalog lookups and WCAG contrast math."""

import pytest

from catalog_mcp.services.catalog import (
    CatalogLookupError,
    CatalogService,
    contrast_ratio,
    parse_color,
)


@pytest.fixture()
def catalog() -> CatalogService:
    return CatalogService()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("#fff", (255, 255, 255)),
        ("#005EA2", (0, 94, 162)),
        ("005ea2", (0, 94, 162)),
        ("rgb(10, 20, 30)", (10, 20, 30)),
        ("Black", (0, 0, 0)),
    ],
)
def test_parse_color(value: str, expected) -> None:
    assert parse_color(value) == expected


@pytest.mark.parametrize("value", ["#ggg", "rgb(300, 0, 0)", "chartreuse-ish", ""])
def test_parse_color_rejects_garbage(value: str) -> None:
    with pytest.raises(CatalogLookupError):
        parse_color(value)


def test_contrast_ratio_extremes() -> None:
    assert contrast_ratio((0, 0, 0), (255, 255, 255)) == pytest.approx(21.0)
    assert contrast_ratio((119, 119, 119), (119, 119, 119)) == pytest.approx(1.0)


def test_check_color_contrast(catalog: CatalogService) -> None:
    result = catalog.check_color_contrast("#767676", "#ffffff")
    assert result["contrast_ratio"] == pytest.approx(4.54, abs=0.01)
    assert result["wcag"]["aa"]["normal_text"]
    assert not result["wcag"]["aaa"]["normal_text"]
    assert result["passes"]


def test_large_text_uses_relaxed_threshold(catalog: CatalogService) -> None:
    normal = catalog.check_color_contrast("#949494", "#ffffff")
    large = catalog.check_color_contrast("#949494", "#ffffff", font_size_px=24)
    assert not normal["passes"]
    assert large["passes"]
    assert large["text_size"] == "large"


def test_list_components_by_category(catalog: CatalogService) -> None:
    everything = catalog.list_components()
    forms = catalog.list_components("Forms")
    assert forms["count"] < everything["count"]
    assert {c["category"] for c in forms["components"]} == {"forms"}


def test_get_component_info(catalog: CatalogService) -> None:
    info = catalog.get_component_info("button")
    assert info["name"] == "Button"
    assert "example" in info
    assert "example" not in catalog.get_component_info("Button", include_examples=False)

    with pytest.raises(CatalogLookupError):
        catalog.get_component_info("Carousel")


def test_design_tokens(catalog: CatalogService) -> None:
    assert catalog.get_design_tokens("color")["tokens"]["primary"] == "#005ea2"
    assert "spacing" in catalog.get_design_tokens()["tokens"]
    with pytest.raises(CatalogLookupError):
        catalog.get_design_tokens("shadows")


def test_search_icons(catalog: CatalogService) -> None:
    result = catalog.search_icons("arrow")
    assert result["icons"] == ["arrow_back", "arrow_forward"]
    assert catalog.search_icons("", limit=3)["count"] == 3


def test_suggest_components(catalog: CatalogService) -> None:
    names = [s["name"] for s in catalog.suggest_components("A signup form with a date")["suggestions"]]
    assert names[:4] == ["TextInput", "Checkbox", "Button", "Alert"]
    assert "DatePicker" in names
    assert len(names) == len(set(names))
    assert catalog.suggest_components("nothing relevant")["suggestions"] == []
