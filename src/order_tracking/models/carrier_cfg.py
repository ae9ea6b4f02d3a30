from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class CarrierCredentials:
    """Per-carrier API credentials. A blank value disables the live call."""
    ups_api_key: str = ""
    fedex_api_key: str = ""
    fedex_secret_key: str = ""
    usps_user_id: str = ""
    dhl_api_key: str = ""

    def has_api(self, code: str) -> bool:
        code = (code or "").lower()
        if code == "ups":
            return bool(self.ups_api_key)
        if code == "fedex":
            return bool(self.fedex_api_key and self.fedex_secret_key)
        if code == "usps":
            return bool(self.usps_user_id)
        if code == "dhl":
            return bool(self.dhl_api_key)
        return False
