from typing import Dict, Optional

from fastapi import Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.models.models import SiteSetting, User
from sawari.schemas.site import FooterSettings
from sawari.services.audit import record_admin_action
from sawari.services.storage import MB, FileStorage, read_image

FOOTER_KEY = "footer"
PAYMENT_QR_KEY = "payment_qr"
QR_MAX_BYTES = 4 * MB


async def _get(db: AsyncSession, key: str) -> Optional[dict]:
    row = await db.get(SiteSetting, key)
    return dict(row.value) if row else None


async def _put(db: AsyncSession, key: str, value: dict) -> None:
    row = await db.get(SiteSetting, key)
    if row is None:
        db.add(SiteSetting(key=key, value=value))
    else:
        row.value = value


async def get_footer_settings(db: AsyncSession) -> Optional[dict]:
    return await _get(db, FOOTER_KEY)


async def update_footer_settings(db: AsyncSession, data: FooterSettings, actor: User, request: Optional[Request] = None) -> dict:
    value = data.model_dump(mode="json")
    await _put(db, FOOTER_KEY, value)
    await record_admin_action(db, actor, "update_footer_settings", "site_setting", FOOTER_KEY, None, request)
    await db.commit()
    return value


async def get_payment_qr_codes(db: AsyncSession) -> Dict[str, str]:
    return await _get(db, PAYMENT_QR_KEY) or {}


async def upload_payment_qr(
    db: AsyncSession, storage: FileStorage, method: str, upload: UploadFile, actor: User, request: Optional[Request] = None
) -> Dict[str, str]:
    data, ext = await read_image(upload, QR_MAX_BYTES)
    codes = await get_payment_qr_codes(db)
    url = await storage.replace(codes.get(method), f"payment_qrs/{method}.{ext}", data, upload.content_type)
    codes[method] = url
    await _put(db, PAYMENT_QR_KEY, codes)
    await record_admin_action(db, actor, "upload_payment_qr", "site_setting", PAYMENT_QR_KEY, {"method": method}, request)
    await db.commit()
    return codes
