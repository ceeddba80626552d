from __future__ import annotations

import base64
import io
import logging

import qrcode
from PIL import Image
from qrcode.image.pil import PilImage
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import COMPANY_QR_CODE_SIZE
from app.models.company_info import CompanyInfo

logger = logging.getLogger(__name__)
COMPANY_QR_PREFIX = "[COMPANY_QR]"
QR_BORDER = 1


def normalize_website_url(url: str) -> str:
    candidate = (url or "").strip()
    if not candidate:
        return ""
    if candidate.lower().startswith(("http://", "https://")):
        return candidate
    return f"https://{candidate}"


def generate_qr_code_data_url(url: str, size: int = COMPANY_QR_CODE_SIZE) -> str:
    """PNG do QR code como data URL, pronto para ``<img src>``."""
    full_url = normalize_website_url(url)
    if not full_url:
        raise ValueError("URL do site é obrigatória para gerar o QR code")

    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=QR_BORDER,
        image_factory=PilImage,
    )
    qr.add_data(full_url)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    if img.size[0] != size:
        img = img.resize((size, size), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def ensure_company_qr_code(db: Session, company: CompanyInfo) -> CompanyInfo:
    """Gera e salva o QR code do site quando ainda não existe.

    Falhas são registradas e não impedem a resposta.
    """
    if not company.website or company.qr_code:
        return company

    try:
        qr_code = generate_qr_code_data_url(company.website)
    except Exception:
        logger.exception("%s generation failed company_id=%s", COMPANY_QR_PREFIX, company.id)
        return company

    company.qr_code = qr_code
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("%s save failed company_id=%s", COMPANY_QR_PREFIX, company.id)
        return company

    db.refresh(company)
    logger.info("%s generated company_id=%s length=%s", COMPANY_QR_PREFIX, company.id, len(qr_code))
    return company
