"""Read-only UI component catalog served through the protocol tools.

The dataset is intentionally small and static; it stands behind the same
lookup interface a database-backed catalog would expose.
"""

from __future__ import annotations

import re
from typing import Any

WCAG_AA_NORMAL = 4.5
WCAG_AA_LARGE = 3.0
WCAG_AAA_NORMAL = 7.0
WCAG_AAA_LARGE = 4.5
LARGE_TEXT_PX = 24
LARGE_BOLD_TEXT_PX = 18.66

COMPONENTS: dict[str, dict[str, Any]] = {
    "Alert": {
        "category": "feedback",
        "description": "Draws attention to important, time-sensitive information.",
        "props": {"type": "info | success | warning | error", "heading": "str", "slim": "bool"},
        "accessibility": [
            "Use role='alert' only for messages that require immediate attention.",
            "Do not rely on color alone to convey the alert type.",
        ],
        "example": '<Alert type="info" heading="Heads up">Maintenance tonight.</Alert>',
    },
    "Button": {
        "category": "actions",
        "description": "Triggers an action such as submitting a form or opening a dialog.",
        "props": {"type": "button | submit | reset", "variant": "primary | secondary | outline"},
        "accessibility": [
            "Use a native <button> element.",
            "Provide a visible text label or an aria-label.",
        ],
        "example": '<Button type="submit">Save</Button>',
    },
    "Checkbox": {
        "category": "forms",
        "description": "Lets users pick any number of options from a list.",
        "props": {"id": "str", "name": "str", "label": "str", "checked": "bool"},
        "accessibility": ["Associate each checkbox with a <label>.", "Group related boxes in a <fieldset>."],
        "example": '<Checkbox id="terms" name="terms" label="I agree" />',
    },
    "DatePicker": {
        "category": "forms",
        "description": "Helps users enter a date with a text input and a calendar.",
        "props": {"id": "str", "name": "str", "minDate": "str", "maxDate": "str"},
        "accessibility": ["Always allow typing the date directly.", "Announce the expected format."],
        "example": '<DatePicker id="start" name="start" />',
    },
    "Header": {
        "category": "navigation",
        "description": "Top-of-page site identity and primary navigation.",
        "props": {"basic": "bool", "extended": "bool"},
        "accessibility": ["Wrap in a <header> landmark.", "Provide a skip link to the main content."],
        "example": "<Header basic>...</Header>",
    },
    "Modal": {
        "category": "feedback",
        "description": "Focuses the user on a single task in a dialog above the page.",
        "props": {"id": "str", "isLarge": "bool", "forceAction": "bool"},
        "accessibility": ["Trap focus inside the dialog.", "Return focus to the trigger on close."],
        "example": '<Modal id="confirm">Are you sure?</Modal>',
    },
    "Pagination": {
        "category": "navigation",
        "description": "Navigates between pages of related content.",
        "props": {"totalPages": "int", "currentPage": "int", "pathname": "str"},
        "accessibility": ["Wrap in <nav aria-label='Pagination'>.", "Mark the current page with aria-current."],
        "example": '<Pagination totalPages={10} currentPage={1} pathname="/results" />',
    },
    "Table": {
        "category": "data",
        "description": "Shows tabular data in rows and columns.",
        "props": {"bordered": "bool", "striped": "bool", "caption": "str"},
        "accessibility": ["Provide a <caption>.", "Use <th scope> for header cells."],
        "example": "<Table bordered caption='Results'>...</Table>",
    },
    "TextInput": {
        "category": "forms",
        "description": "Single-line free text entry.",
        "props": {"id": "str", "name": "str", "type": "text | email | number | password"},
        "accessibility": ["Pair with a visible <label>.", "Link errors with aria-describedby."],
        "example": '<TextInput id="email" name="email" type="email" />',
    },
}

DESIGN_TOKENS: dict[str, dict[str, str]] = {
    "color": {
        "primary": "#005ea2",
        "primary-dark": "#1a4480",
        "secondary": "#d83933",
        "accent-cool": "#00bde3",
        "base": "#71767a",
        "base-lightest": "#f0f0f0",
        "ink": "#1b1b1b",
        "white": "#ffffff",
        "error": "#d54309",
        "success": "#00a91c",
    },
    "spacing": {"05": "4px", "1": "8px", "2": "16px", "3": "24px", "4": "32px", "5": "40px"},
    "typography": {
        "font-sans": "Source Sans Pro, Helvetica, Arial, sans-serif",
        "font-serif": "Merriweather, Georgia, serif",
        "size-sm": "15px",
        "size-md": "17px",
        "size-lg": "22px",
    },
    "breakpoint": {"mobile-lg": "480px", "tablet": "640px", "desktop": "1024px"},
}

ICONS: tuple[str, ...] = (
    "add", "arrow_back", "arrow_forward", "check", "check_circle", "close",
    "error", "expand_less", "expand_more", "help", "info", "launch", "lock",
    "mail", "menu", "navigate_next", "print", "search", "settings", "warning",
)

SUGGESTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "form": ("TextInput", "Checkbox", "DatePicker", "Button"),
    "signup": ("TextInput", "Checkbox", "Button", "Alert"),
    "login": ("TextInput", "Button", "Alert"),
    "date": ("DatePicker",),
    "navigation": ("Header", "Pagination"),
    "list": ("Table", "Pagination"),
    "results": ("Table", "Pagination"),
    "data": ("Table",),
    "confirm": ("Modal", "Button"),
    "dialog": ("Modal",),
    "error": ("Alert",),
    "notification": ("Alert",),
}

NAMED_COLORS: dict[str, tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
}

_HEX_COLOR = re.compile(r"^#?([0-9a-f]{3}|[0-9a-f]{6})$")
_RGB_COLOR = re.compile(r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*[\d.]+\s*)?\)$")


class CatalogLookupError(ValueError):
    """Raised when a lookup names something the catalog does not contain."""


def parse_color(value: str) -> tuple[int, int, int]:
    """Parse ``#rgb``, ``#rrggbb``, ``rgb(r, g, b)`` or a basic named color."""
    text = (value or "").strip().lower()
    if text in NAMED_COLORS:
        return NAMED_COLORS[text]
    match = _HEX_COLOR.match(text)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
    match = _RGB_COLOR.match(text)
    if match:
        channels = tuple(int(group) for group in match.groups())
        if all(0 <= channel <= 255 for channel in channels):
            return channels  # type: ignore[return-value]
    raise CatalogLookupError(
        f"Invalid color '{value}'. Use hex (#RRGGBB), rgb(r, g, b), or a named color."
    )


def relative_luminance(rgb: tuple[int, int, int]) -> float:
    """WCAG 2.x relative luminance of an sRGB color."""

    def channel(value: int) -> float:
        srgb = value / 255.0
        return srgb / 12.92 if srgb <= 0.03928 else ((srgb + 0.055) / 1.055) ** 2.4

    red, green, blue = (channel(v) for v in rgb)
    return 0.2126 * red + 0.7152 * green + 0.0722 * blue


def contrast_ratio(first: tuple[int, int, int], second: tuple[int, int, int]) -> float:
    lighter, darker = sorted((relative_luminance(first), relative_luminance(second)), reverse=True)
    return (lighter + 0.05) / (darker + 0.05)


class CatalogService:
    """Lookups over the static component catalog."""

    def list_components(self, category: str = "all") -> dict[str, Any]:
        wanted = (category or "all").lower()
        components = [
            {"name": name, "category": info["category"], "description": info["description"]}
            for name, info in sorted(COMPONENTS.items())
            if wanted == "all" or info["category"] == wanted
        ]
        return {"category": wanted, "count": len(components), "components": components}

    def get_component_info(self, name: str, include_examples: bool = True) -> dict[str, Any]:
        key = next((known for known in COMPONENTS if known.lower() == (name or "").lower()), None)
        if key is None:
            raise CatalogLookupError(f"Component '{name}' not found")
        info = dict(COMPONENTS[key])
        if not include_examples:
            info.pop("example", None)
        return {"name": key, **info}

    def get_design_tokens(self, category: str = "all") -> dict[str, Any]:
        wanted = (category or "all").lower()
        if wanted == "all":
            return {"category": "all", "tokens": DESIGN_TOKENS}
        if wanted not in DESIGN_TOKENS:
            raise CatalogLookupError(
                f"Unknown token category '{category}'. "
                f"Available: {', '.join(sorted(DESIGN_TOKENS))}"
            )
        return {"category": wanted, "tokens": DESIGN_TOKENS[wanted]}

    def search_icons(self, query: str, limit: int = 20) -> dict[str, Any]:
        needle = (query or "").strip().lower()
        matches = [icon for icon in ICONS if needle in icon] if needle else list(ICONS)
        return {"query": needle, "count": len(matches[:limit]), "icons": matches[:limit]}

    def suggest_components(self, use_case: str) -> dict[str, Any]:
        words = re.findall(r"[a-z]+", (use_case or "").lower())
        suggestions: list[str] = []
        for word in words:
            for component in SUGGESTION_KEYWORDS.get(word, ()):
                if component not in suggestions:
                    suggestions.append(component)
        return {
            "use_case": use_case,
            "suggestions": [
                {"name": name, "description": COMPONENTS[name]["description"]}
                for name in suggestions
            ],
        }

    def check_color_contrast(
        self,
        foreground: str,
        background: str,
        font_size_px: float | None = None,
        bold: bool = False,
    ) -> dict[str, Any]:
        fg = parse_color(foreground)
        bg = parse_color(background)
        ratio = contrast_ratio(fg, bg)
        size = font_size_px or 0
        large = size >= LARGE_TEXT_PX or (bold and size >= LARGE_BOLD_TEXT_PX)
        aa = {"normal_text": ratio >= WCAG_AA_NORMAL, "large_text": ratio >= WCAG_AA_LARGE}
        aaa = {"normal_text": ratio >= WCAG_AAA_NORMAL, "large_text": ratio >= WCAG_AAA_LARGE}

        if ratio < WCAG_AA_LARGE:
            recommendation = "Contrast is too low for text; use it only for decorative elements."
        elif ratio < WCAG_AA_NORMAL:
            recommendation = "Suitable for large text only. Increase contrast for body text."
        elif ratio < WCAG_AAA_NORMAL:
            recommendation = "Meets WCAG AA for all text sizes."
        else:
            recommendation = "Meets WCAG AAA for all text sizes."

        return {
            "foreground": "#{:02x}{:02x}{:02x}".format(*fg),
            "background": "#{:02x}{:02x}{:02x}".format(*bg),
            "contrast_ratio": round(ratio, 2),
            "text_size": "large" if large else "normal",
            "passes": aa["large_text"] if large else aa["normal_text"],
            "wcag": {"aa": aa, "aaa": aaa},
            "recommendation": recommendation,
        }
