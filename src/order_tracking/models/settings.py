from __future__ import annotations
from dataclasses import asdict, dataclass, fields
from typing import Any, Optional

# Fields the storefront widget may read without authentication.
_PUBLIC_FIELDS = (
    "page_title",
    "not_dispatched_message",
    "tracking_found_message",
    "show_recommended_products",
    "show_faq",
    "custom_faq_text",
    "banner_text",
    "logo_url",
    "primary_color",
    "background_color",
    "text_color",
    "button_color",
    "button_text_color",
    "font_family",
    "border_radius",
    "tracking_page_enabled",
    "tracking_block_enabled",
)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)


@dataclass(frozen=True)
class MerchantSettings:
    shop_domain: str
    tracking_page_enabled: bool = True
    tracking_block_enabled: bool = False
    page_title: str = "Track Your Order"
    not_dispatched_message: str = (
        "Your order has not been dispatched yet. We will notify you once it ships."
    )
    tracking_found_message: str = "Your tracking information:"
    show_recommended_products: bool = False
    show_faq: bool = False
    custom_faq_text: str = ""
    banner_text: str = ""
    logo_url: str = ""
    primary_color: str = "#000000"
    background_color: str = "#ffffff"
    text_color: str = "#333333"
    button_color: str = "#007ace"
    button_text_color: str = "#ffffff"
    font_family: str = "inherit"
    border_radius: str = "4px"
    updated_at: Optional[str] = None

    @property
    def tracking_enabled(self) -> bool:
        return bool(self.tracking_page_enabled or self.tracking_block_enabled)

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name not in ("shop_domain", "updated_at"))

    def public_dict(self) -> dict[str, Any]:
        return {_camel(k): getattr(self, k) for k in _PUBLIC_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
