"""
Transactional email through the Brevo HTTP API.
"""

import logging
from typing import Dict

import httpx

from fleetflow.app.core.config import settings
from fleetflow.app.core.exceptions import EmailDeliveryError

logger = logging.getLogger("fleetflow.email")


OTP_SUBJECTS: Dict[str, str] = {
    "verification": "Email Verification - OTP Code",
    "password_reset": "Password Reset - OTP Code",
}


def render_otp_email(name: str, otp: str, purpose: str) -> str:
    if purpose == "password_reset":
        intro = "Use the code below to reset your FleetFlow password."
    else:
        intro = "Thank you for registering with FleetFlow. Use the code below to verify your email."

    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2 style="color: #1e3a8a;">FleetFlow</h2>
      <p>Hello {name},</p>
      <p>{intro}</p>
      <div style="background: #f3f4f6; padding: 20px; text-align: center; font-size: 32px; letter-spacing: 8px; font-weight: bold;">
        {otp}
      </div>
      <p>This code will expire in {settings.otp_ttl_minutes} minutes.</p>
      <p>If you didn't request this, please ignore this email.</p>
    </div>
    """


class EmailService:

    @staticmethod
    async def send_otp_email(to_email: str, name: str, otp: str, purpose: str = "verification") -> None:
        """
        Send a one-time code.

        Raises:
            EmailDeliveryError: Brevo is unreachable or rejects the message
        """
        payload = {
            "sender": {"name": settings.email_sender_name, "email": settings.email_sender},
            "to": [{"email": to_email, "name": name}],
            "subject": OTP_SUBJECTS.get(purpose, OTP_SUBJECTS["verification"]),
            "htmlContent": render_otp_email(name, otp, purpose),
        }
        headers = {
            "accept": "application/json",
            "api-key": settings.brevo_api_key,
            "content-type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=settings.email_timeout_seconds) as client:
                response = await client.post(settings.brevo_api_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Brevo rejected %s email to %s: %s %s",
                purpose, to_email, exc.response.status_code, exc.response.text,
            )
            raise EmailDeliveryError() from exc
        except httpx.HTTPError as exc:
            logger.error("Could not reach Brevo for %s email to %s: %s", purpose, to_email, exc)
            raise EmailDeliveryError() from exc

        logger.info("Sent %s email to %s", purpose, to_email)
