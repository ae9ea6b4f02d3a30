from __future__ import annotations

from typing import Any, Optional
import logging

from sqlalchemy import select

from order_tracking.models import MerchantSettings

from .db import Database
from .tables import MerchantSettingsRow, ShopDataRow


def _row_to_settings(row: MerchantSettingsRow) -> MerchantSettings:
    values = {name: getattr(row, name) for name in MerchantSettings.field_names()}
    return MerchantSettings(
        shop_domain=row.shop_domain,
        updated_at=row.updated_at.isoformat() if row.updated_at else None,
        **values,
    )


class SettingsStore:
    """Per-shop merchant settings and stored platform access tokens."""

    def __init__(
        self,
        db: Database,
        *,
        fallback_access_token: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.db = db
        self.fallback_access_token = fallback_access_token or None
        self.logger = logger or logging.getLogger("order_tracking.storage.settings")

    def get_settings(self, shop_domain: str) -> Optional[MerchantSettings]:
        with self.db.session() as s:
            row = s.scalar(select(MerchantSettingsRow).where(
                MerchantSettingsRow.shop_domain == shop_domain))
            return _row_to_settings(row) if row is not None else None

    def update_settings(self, shop_domain: str, /, **changes: Any) -> MerchantSettings:
        """
        Create or update the shop's settings row. Unknown keys raise KeyError;
        keys left out keep their stored (or default) values.
        """
        allowed = set(MerchantSettings.field_names())
        unknown = sorted(set(changes) - allowed)
        if unknown:
            raise KeyError(f"Unknown setting(s): {', '.join(unknown)}")

        with self.db.session() as s:
            row = s.scalar(select(MerchantSettingsRow).where(
                MerchantSettingsRow.shop_domain == shop_domain))
            if row is None:
                defaults = MerchantSettings(shop_domain=shop_domain)
                row = MerchantSettingsRow(
                    shop_domain=shop_domain,
                    **{name: getattr(defaults, name) for name in allowed},
                )
                s.add(row)
                self.logger.info("Created settings for %s", shop_domain)
            for key, value in changes.items():
                setattr(row, key, value)
            s.flush()
            s.refresh(row)
            return _row_to_settings(row)

    def store_shop_data(
        self,
        shop_domain: str,
        access_token: str,
        *,
        shop_name: Optional[str] = None,
        shop_email: Optional[str] = None,
    ) -> None:
        with self.db.session() as s:
            row = s.scalar(select(ShopDataRow).where(ShopDataRow.shop_domain == shop_domain))
            if row is None:
                row = ShopDataRow(shop_domain=shop_domain, access_token=access_token)
                s.add(row)
            row.access_token = access_token
            row.shop_name = shop_name
            row.shop_email = shop_email

    def get_access_token(self, shop_domain: str) -> Optional[str]:
        """Stored token for the shop, else the configured development token."""
        with self.db.session() as s:
            token = s.scalar(select(ShopDataRow.access_token).where(
                ShopDataRow.shop_domain == shop_domain))
        return token or self.fallback_access_token
