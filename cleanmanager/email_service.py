"""
Email Service using Resend
Templates are MJML (see email_templates.py) compiled to HTML before sending
"""

import logging
from collections.abc import Awaitable
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import (
    email_verification_template,
    feedback_request_template,
    invoice_issued_template,
    job_assigned_template,
    job_cancelled_template,
    job_completed_template,
    job_rescheduled_template,
    job_update_notification_template,
    password_reset_template,
    payment_reminder_template,
    portal_login_code_template,
    quote_response_template,
    quote_sent_template,
    staff_message_template,
    welcome_email_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email cannot be compiled or handed to the provider"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {e}") from e

    errors = getattr(result, "errors", None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    html = getattr(result, "html", None)
    if html is None and isinstance(result, dict):
        html = result.get("html", "")
    return html if html is not None else str(result)


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (compiled to HTML here)
        from_address: Optional override of EMAIL_FROM_ADDRESS

    Raises:
        EmailDeliveryError: when Resend is not configured or the send fails
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {e}") from e


async def send_best_effort(pending: Awaitable[dict], description: str) -> bool:
    """Await an email send, logging instead of raising on failure"""
    try:
        await pending
        return True
    except EmailDeliveryError as e:
        logger.warning(f"⚠️ Could not send {description}: {e}")
        return False


# ============================================
# Pre-built emails for account and job events
# ============================================


async def send_verification_email(to: str, user_name: str, token: str) -> dict:
    verify_link = f"{FRONTEND_URL}/verify-email?token={token}"
    return await send_email(
        to=to,
        subject="Verify Your Email - CleanManager",
        mjml_content=email_verification_template(user_name, verify_link),
    )


async def send_welcome_email(to: str, user_name: str, company_name: str) -> dict:
    return await send_email(
        to=to,
        subject="Welcome to CleanManager",
        mjml_content=welcome_email_template(user_name, company_name),
    )


async def send_password_reset_email(to: str, token: str) -> dict:
    reset_link = f"{FRONTEND_URL}/reset-password?token={token}"
    return await send_email(
        to=to,
        subject="Reset Your Password - CleanManager",
        mjml_content=password_reset_template(reset_link),
    )


async def send_job_assigned_email(to: str, employee_name: str, company_name: str, job) -> dict:
    return await send_email(
        to=to,
        subject=f"New job assigned: {job.title}",
        mjml_content=job_assigned_template(
            employee_name, company_name, job.title, job.scheduled_for, job.location
        ),
    )


def feedback_link_for(token: str) -> str:
    return f"{FRONTEND_URL}/feedback/{token}"


async def send_job_completed_email(to: str, customer_name: str, company_name: str, job) -> dict:
    """Completion notice to the customer, with a feedback link when a token exists"""
    feedback_link = None
    if job.feedback_token:
        feedback_link = feedback_link_for(job.feedback_token)
    return await send_email(
        to=to,
        subject=f"{job.title} has been completed",
        mjml_content=job_completed_template(
            customer_name, company_name, job.title, job.completed_at, feedback_link
        ),
    )


async def send_job_update_notification(
    to: str, company_name: str, job_title: str, update: str, actor_name: Optional[str] = None
) -> dict:
    return await send_email(
        to=to,
        subject=f"Job {update}: {job_title}",
        mjml_content=job_update_notification_template(company_name, job_title, update, actor_name),
    )


async def send_job_cancelled_email(
    to: str, recipient_name: str, company_name: str, job, reason: str
) -> dict:
    return await send_email(
        to=to,
        subject=f"Job cancelled: {job.title}",
        mjml_content=job_cancelled_template(
            recipient_name, company_name, job.title, job.scheduled_for, reason
        ),
    )


async def send_job_rescheduled_email(
    to: str,
    recipient_name: str,
    company_name: str,
    job,
    original_date,
    reason: str,
) -> dict:
    return await send_email(
        to=to,
        subject=f"Job rescheduled: {job.title}",
        mjml_content=job_rescheduled_template(
            recipient_name, company_name, job.title, original_date, job.scheduled_for, reason, job.location
        ),
    )


async def send_feedback_request_email(
    to: str, customer_name: str, company_name: str, job, staff_name: Optional[str] = None
) -> dict:
    return await send_email(
        to=to,
        subject=f"How did we do? {job.title}",
        mjml_content=feedback_request_template(
            customer_name,
            company_name,
            job.title,
            job.completed_at,
            feedback_link_for(job.feedback_token),
            staff_name,
        ),
    )


async def send_quote_email(to: str, customer_name: str, company_name: str, quote) -> dict:
    view_link = f"{FRONTEND_URL}/quote/{quote.id}?token={quote.access_token}"
    return await send_email(
        to=to,
        subject=f"Quote {quote.quote_number} from {company_name}",
        mjml_content=quote_sent_template(
            customer_name,
            company_name,
            quote.quote_number,
            quote.total,
            quote.currency,
            quote.valid_until,
            view_link,
        ),
    )


async def send_quote_response_notification(
    to: str,
    company_name: str,
    quote_number: str,
    customer_name: str,
    accepted: bool,
    reason: Optional[str] = None,
) -> dict:
    outcome = "accepted" if accepted else "declined"
    return await send_email(
        to=to,
        subject=f"Quote {quote_number} {outcome}",
        mjml_content=quote_response_template(company_name, quote_number, customer_name, accepted, reason),
    )


async def send_invoice_email(to: str, customer_name: str, company_name: str, invoice) -> dict:
    return await send_email(
        to=to,
        subject=f"Invoice {invoice.invoice_number}",
        mjml_content=invoice_issued_template(
            customer_name,
            company_name,
            invoice.invoice_number,
            invoice.amount_due if invoice.amount_due is not None else invoice.total,
            invoice.currency,
            invoice.due_at,
        ),
    )


async def send_staff_message_email(
    to: str, recipient_name: str, sender_name: str, subject: str, body: str
) -> dict:
    return await send_email(
        to=to,
        subject=subject,
        mjml_content=staff_message_template(recipient_name, sender_name, subject, body),
    )


async def send_portal_login_code(to: str, customer_name: str, code: str) -> dict:
    return await send_email(
        to=to,
        subject="Your CleanManager sign-in code",
        mjml_content=portal_login_code_template(customer_name, code),
    )


async def send_payment_reminder_email(
    to: str, customer_name: str, company_name: str, invoice, days_overdue: int
) -> dict:
    return await send_email(
        to=to,
        subject=f"Payment reminder: invoice {invoice.invoice_number}",
        mjml_content=payment_reminder_template(
            customer_name,
            company_name,
            invoice.invoice_number,
            invoice.amount_due if invoice.amount_due is not None else invoice.total,
            invoice.currency,
            invoice.due_at,
            days_overdue,
        ),
    )
