from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class MerchantSettingsRow(Base):
    __tablename__ = "merchant_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop_domain: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    tracking_page_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    tracking_block_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    page_title: Mapped[str] = mapped_column(String(255), default="Track Your Order")
    not_dispatched_message: Mapped[str] = mapped_column(Text, default="")
    tracking_found_message: Mapped[str] = mapped_column(Text, default="")
    show_recommended_products: Mapped[bool] = mapped_column(Boolean, default=False)
    show_faq: Mapped[bool] = mapped_column(Boolean, default=False)
    custom_faq_text: Mapped[str] = mapped_column(Text, default="")
    banner_text: Mapped[str] = mapped_column(Text, default="")
    logo_url: Mapped[str] = mapped_column(String(1024), default="")
    primary_color: Mapped[str] = mapped_column(String(32), default="#000000")
    background_color: Mapped[str] = mapped_column(String(32), default="#ffffff")
    text_color: Mapped[str] = mapped_column(String(32), default="#333333")
    button_color: Mapped[str] = mapped_column(String(32), default="#007ace")
    button_text_color: Mapped[str] = mapped_column(String(32), default="#ffffff")
    font_family: Mapped[str] = mapped_column(String(255), default="inherit")
    border_radius: Mapped[str] = mapped_column(String(32), default="4px")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class TrackingViewRow(Base):
    __tablename__ = "tracking_analytics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop_domain: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True)
    order_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True)


class ShopDataRow(Base):
    """Access token stored after the platform's install flow."""
    __tablename__ = "shop_data"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop_domain: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    access_token: Mapped[str] = mapped_column(String(255), nullable=False)
    shop_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    shop_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
