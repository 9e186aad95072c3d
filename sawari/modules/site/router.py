from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.db.session import get_session
from sawari.schemas.site import FooterSettings, PaymentQrCodes
from sawari.services import site_settings

router = APIRouter(tags=["site"])


@router.get("/footer", response_model=FooterSettings)
async def footer(db: AsyncSession = Depends(get_session)):
    value = await site_settings.get_footer_settings(db)
    if value is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Footer settings not configured")
    return value


@router.get("/payment-qr", response_model=PaymentQrCodes)
async def payment_qr(db: AsyncSession = Depends(get_session)):
    return await site_settings.get_payment_qr_codes(db)
