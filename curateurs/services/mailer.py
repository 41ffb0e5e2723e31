# services/mailer.py
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from curateurs.background import run_sync, spawn
from curateurs.routes_shared import templates
from curateurs.settings.config import settings

logger = logging.getLogger(__name__)


def _render(name: str, ctx: dict) -> tuple[str, str]:
    html = templates.get_template(f"email/{name}.html").render(ctx)
    text = templates.get_template(f"email/{name}.txt").render(ctx)
    return text, html


def render_verification_email(link: str, name: str = "") -> tuple[str, str, str]:
    subject = "Vérifiez votre adresse email"
    text, html = _render("verify_email", {"link": link, "name": name})
    return subject, text, html


def render_reset_password_email(link: str, name: str = "") -> tuple[str, str, str]:
    subject = "Réinitialisation de votre mot de passe"
    text, html = _render("reset_password", {"link": link, "name": name})
    return subject, text, html


def send_email(
    to_email: str,
    subject: str,
    text_body: Optional[str] = None,
    html_body: Optional[str] = None,
    reply_to: Optional[str] = None,
) -> bool:
    """
    Sends an email using SMTP or 'dummy' transport (logs only).
    Uses STARTTLS/SSL based on settings; logs in if SMTP_USERNAME is provided.
    Keeps From == authenticated user for Gmail; puts branded address in Reply-To.
    """
    if not to_email or not subject:
        logger.warning("Refusing to send email: recipient and subject are required")
        return False
    try:
        validate_email(to_email, check_deliverability=False)
    except EmailNotValidError as exc:
        logger.warning("Refusing to send email to %r: %s", to_email, exc)
        return False
    if not text_body and not html_body:
        logger.warning("Refusing to send email to %s: no text or html content", to_email)
        return False

    transport = (settings.EMAIL_TRANSPORT or "smtp").lower()

    if transport == "dummy":
        logger.info("DUMMY EMAIL (not sent) to=%s subject=%r\n%s", to_email, subject, text_body or html_body)
        return True

    from_addr = (settings.SMTP_FROM or settings.SMTP_USERNAME or "").strip()

    # Gmail enforces From to match the authenticated account; push branded address into Reply-To
    if settings.SMTP_USERNAME and from_addr and from_addr.lower() != (settings.SMTP_USERNAME or "").lower():
        if not reply_to:
            reply_to = from_addr
        from_addr = settings.SMTP_USERNAME

    msg = MIMEMultipart("alternative")
    msg["From"] = from_addr
    msg["To"] = to_email
    msg["Subject"] = subject
    if reply_to:
        msg["Reply-To"] = reply_to

    msg.attach(MIMEText(text_body or "", "plain", "utf-8"))
    if html_body:
        msg.attach(MIMEText(html_body, "html", "utf-8"))

    host = settings.SMTP_HOST
    port = int(settings.SMTP_PORT or 587)

    try:
        if settings.SMTP_USE_SSL:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(host, port, context=context, timeout=30) as s:
                if settings.SMTP_USERNAME:
                    s.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
                s.sendmail(from_addr, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(host, port, timeout=30) as s:
                s.ehlo()
                if settings.SMTP_USE_TLS:
                    s.starttls(context=ssl.create_default_context())
                    s.ehlo()
                if settings.SMTP_USERNAME:
                    s.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
                s.sendmail(from_addr, [to_email], msg.as_string())
        logger.info("Email sent to %s (%r)", to_email, subject)
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error("SMTP error sending to %s: %s", to_email, e)
        return False


async def _deliver(to_email: str, subject: str, text_body: str, html_body: Optional[str]) -> bool:
    ok = await run_sync(send_email, to_email, subject, text_body, html_body)
    if not ok:
        logger.warning("Email %r to %s was not delivered", subject, to_email)
    return ok


def dispatch_email(to_email: str, subject: str, text_body: str, html_body: Optional[str] = None):
    """Queue an email on the background runner; the caller never waits on SMTP."""
    return spawn(_deliver(to_email, subject, text_body, html_body), name=f"email:{subject}")
