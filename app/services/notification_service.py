# DOMESTICA/backend/app/services/notification_service.py : message d'assignation

"""
Construit le message envoyé à l'employée lors d'une assignation.
La livraison (WhatsApp ou autre canal) reste à la charge du client: aucun envoi ici.
"""

import logging
import re
import warnings
from typing import Optional
from urllib.parse import quote

from app.config import BUSINESS_NAME, CURRENCY_SYMBOL, WHATSAPP_COUNTRY_CODE
from app.errors import IntegrityWarning
from app.services.scheduler import ScheduleConfig, schedule_summary

logger = logging.getLogger(__name__)


def format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"{CURRENCY_SYMBOL}{int(amount):,}"
    return f"{CURRENCY_SYMBOL}{amount:,.2f}"


def build_assignment_message(
    worker_name: str,
    service_label: str,
    client_name: str,
    client_address: Optional[str],
    client_phone: Optional[str],
    config: ScheduleConfig,
    notes: Optional[str] = None,
) -> str:
    lines = [
        f"Hola {worker_name} 👋",
        "",
        f"🏠 *{BUSINESS_NAME}* te tiene un nuevo servicio:",
        "",
        f"📌 *Servicio:* {service_label}",
        f"👤 *Cliente:* {client_name}",
        f"📍 *Dirección:* {client_address or 'Por confirmar'}",
        f"📞 *Tel. Cliente:* {client_phone or '—'}",
        f"💰 *Precio Total:* {format_amount(config.total_price)}",
        f"📅 *Duración:* {schedule_summary(config)}",
        f"⏰ *Horas/visita:* {config.hours_per_visit:g}h",
        f"🔢 *Total visitas:* {config.total_visits}",
    ]
    if notes:
        lines.append(f"📝 *Notas:* {notes}")
    lines += ["", "¿Puedes aceptar? Responde *SÍ* o *NO*.", "", "¡Gracias! 🙏"]
    return "\n".join(lines)


def normalize_phone(phone: Optional[str]) -> str:
    digits = re.sub(r"[^0-9]", "", phone or "")
    if digits and not digits.startswith(WHATSAPP_COUNTRY_CODE):
        digits = f"{WHATSAPP_COUNTRY_CODE}{digits}"
    return digits


def build_whatsapp_link(phone: Optional[str], message: str) -> Optional[str]:
    """Lien wa.me prêt à ouvrir; None (avec avertissement) si l'employée n'a pas de téléphone"""
    digits = normalize_phone(phone)
    if not digits:
        msg = "Worker has no phone number: assignment message cannot be delivered"
        logger.warning(f"⚠️ {msg}")
        warnings.warn(msg, IntegrityWarning, stacklevel=2)
        return None
    return f"https://wa.me/{digits}?text={quote(message)}"
