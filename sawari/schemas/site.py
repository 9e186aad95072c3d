from typing import Dict, Optional

from pydantic import Field, HttpUrl

from sawari.schemas.base import CamelModel


class FooterSettings(CamelModel):
    customer_service_phone: str = Field(..., min_length=1)
    whatsapp_number: str = Field(..., min_length=1)
    facebook_url: HttpUrl
    instagram_url: HttpUrl


class PaymentQrCodes(CamelModel):
    esewa: Optional[str] = None
    khalti: Optional[str] = None
    imepay: Optional[str] = None


class ActionResult(CamelModel):
    success: bool = True
    message: str
    detail: Optional[Dict[str, int]] = None
