"""
MJML Email Templates
All outbound email bodies, written in MJML and compiled to HTML at send time
"""

from datetime import datetime
from html import escape
from typing import Optional

from .config import FRONTEND_URL

# Brand colours - Blue/Slate scheme
THEME = {
    "primary": "#2563eb",
    "primary_dark": "#1d4ed8",
    "primary_light": "#dbeafe",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

CURRENCY_SYMBOLS = {"GBP": "£", "EUR": "€", "USD": "$"}


def format_money(amount: Optional[float], currency: str = "GBP") -> str:
    symbol = CURRENCY_SYMBOLS.get((currency or "GBP").upper(), "")
    return f"{symbol}{(amount or 0):,.2f}"


def format_when(value: Optional[datetime]) -> str:
    if not value:
        return "To be confirmed"
    return value.strftime("%A %d %B %Y at %H:%M")


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    is_user_email: bool = False,
) -> str:
    """Base MJML wrapper shared by every email"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if is_user_email:
        footer_notice = """
        <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
          You're receiving this because you have a CleanManager account.
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 0 40px">
          <mj-column>
            <mj-text font-size="20px" font-weight="700" color="{THEME['primary']}" padding="0 0 24px 0">
              CleanManager
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 32px 0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              © {datetime.utcnow().year} CleanManager. All rights reserved.
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_rows(rows: list[tuple[str, str]]) -> str:
    """Label/value table used for job, quote and invoice summaries"""
    cells = "".join(
        f"""
        <tr>
          <td style="padding: 6px 0; color: {THEME['text_muted']}; width: 40%;">{escape(label)}</td>
          <td style="padding: 6px 0; color: {THEME['text_primary']}; font-weight: 600;">{escape(value)}</td>
        </tr>"""
        for label, value in rows
    )
    return f"""
    <mj-table padding="8px 0 24px 0">
      {cells}
    </mj-table>
    """


def email_verification_template(user_name: str, verify_link: str) -> str:
    content = f"""
    <mj-text>
      Hi {escape(user_name)},
    </mj-text>

    <mj-text>
      Thanks for signing up. Please confirm your email address to activate your account.
      This link expires in 24 hours.
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't create an account, you can safely ignore this email.
    </mj-text>
    """

    return get_base_template(
        title="Verify Your Email Address",
        preview_text="Confirm your email to activate your account",
        content_sections=content,
        cta_url=verify_link,
        cta_label="Verify Email",
        is_user_email=True,
    )


def welcome_email_template(user_name: str, company_name: str) -> str:
    """Welcome email sent once the address is verified"""
    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 24px 0">
      Your email has been verified.
    </mj-text>

    <mj-text>
      Hi {escape(user_name)},
    </mj-text>

    <mj-text>
      Welcome to CleanManager! {escape(company_name)} is ready to go.
    </mj-text>

    <mj-text padding="0 0 0 20px">
      • Add your customers and team<br/>
      • Schedule and assign jobs<br/>
      • Send quotes and invoices
    </mj-text>
    """

    return get_base_template(
        title="Welcome to CleanManager!",
        preview_text="Your account is ready",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard",
        cta_label="Go to Dashboard",
        is_user_email=True,
    )


def password_reset_template(reset_link: str) -> str:
    content = f"""
    <mj-text>
      We received a request to reset your password. The link below is valid for one hour
      and can only be used once.
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't request a reset, ignore this email and your password will stay the same.
    </mj-text>
    """

    return get_base_template(
        title="Reset Your Password",
        preview_text="Reset your CleanManager password",
        content_sections=content,
        cta_url=reset_link,
        cta_label="Reset Password",
        is_user_email=True,
    )


def job_assigned_template(
    employee_name: str,
    company_name: str,
    job_title: str,
    scheduled_for: Optional[datetime],
    location: Optional[str],
) -> str:
    content = f"""
    <mj-text>
      Hi {escape(employee_name)},
    </mj-text>

    <mj-text>
      {escape(company_name)} has assigned you a new job.
    </mj-text>
    {_detail_rows([
        ("Job", job_title),
        ("When", format_when(scheduled_for)),
        ("Where", location or "See job details"),
    ])}
    """

    return get_base_template(
        title="New Job Assigned",
        preview_text=f"You have been assigned: {escape(job_title)}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/employee/jobs",
        cta_label="View My Jobs",
    )


def job_completed_template(
    customer_name: str,
    company_name: str,
    job_title: str,
    completed_at: Optional[datetime],
    feedback_link: Optional[str] = None,
) -> str:
    """Completion notice sent to the customer"""
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      {escape(company_name)} has completed your job. Thank you for your business!
    </mj-text>
    {_detail_rows([
        ("Job", job_title),
        ("Completed", format_when(completed_at)),
    ])}
    """

    return get_base_template(
        title="Your Job Is Complete",
        preview_text=f"{escape(job_title)} has been completed",
        content_sections=content,
        cta_url=feedback_link,
        cta_label="Leave Feedback" if feedback_link else None,
    )


def job_update_notification_template(
    company_name: str, job_title: str, update: str, actor_name: Optional[str] = None
) -> str:
    actor = f" by {escape(actor_name)}" if actor_name else ""
    content = f"""
    <mj-text>
      Hi {escape(company_name)} team,
    </mj-text>

    <mj-text>
      <strong>{escape(job_title)}</strong> was {escape(update)}{actor}.
    </mj-text>
    """

    return get_base_template(
        title="Job Update",
        preview_text=f"{escape(job_title)} was {escape(update)}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/jobs",
        cta_label="View Jobs",
        is_user_email=True,
    )


def job_cancelled_template(
    recipient_name: str, company_name: str, job_title: str, scheduled_for: Optional[datetime], reason: str
) -> str:
    content = f"""
    <mj-text>
      Hi {escape(recipient_name)},
    </mj-text>

    <mj-text>
      {escape(company_name)} has cancelled the following job.
    </mj-text>
    {_detail_rows([
        ("Job", job_title),
        ("Was scheduled", format_when(scheduled_for)),
        ("Reason", reason),
    ])}
    """

    return get_base_template(
        title="Job Cancelled",
        preview_text=f"{escape(job_title)} has been cancelled",
        content_sections=content,
    )


def job_rescheduled_template(
    recipient_name: str,
    company_name: str,
    job_title: str,
    original_date: Optional[datetime],
    new_date: datetime,
    reason: str,
    location: Optional[str] = None,
) -> str:
    rows = [
        ("Job", job_title),
        ("Was scheduled", format_when(original_date)),
        ("Now scheduled", format_when(new_date)),
        ("Reason", reason),
    ]
    if location:
        rows.append(("Location", location))
    content = f"""
    <mj-text>
      Hi {escape(recipient_name)},
    </mj-text>

    <mj-text>
      {escape(company_name)} has moved the following job to a new time.
    </mj-text>
    {_detail_rows(rows)}
    """

    return get_base_template(
        title="Job Rescheduled",
        preview_text=f"{escape(job_title)} has a new date",
        content_sections=content,
    )


def feedback_request_template(
    customer_name: str,
    company_name: str,
    job_title: str,
    completed_at: Optional[datetime],
    feedback_link: str,
    staff_name: Optional[str] = None,
) -> str:
    rows = [("Job", job_title), ("Completed", format_when(completed_at))]
    if staff_name:
        rows.append(("Cleaned by", staff_name))
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      How did we do? {escape(company_name)} would love to hear about your recent clean.
      It only takes a moment.
    </mj-text>
    {_detail_rows(rows)}
    """

    return get_base_template(
        title="How Did We Do?",
        preview_text=f"Rate your {escape(job_title)}",
        content_sections=content,
        cta_url=feedback_link,
        cta_label="Leave Feedback",
    )


def quote_sent_template(
    customer_name: str,
    company_name: str,
    quote_number: str,
    total: float,
    currency: str,
    valid_until: Optional[datetime],
    view_link: str,
) -> str:
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      {escape(company_name)} has sent you a quote. You can review it and accept or decline online.
    </mj-text>
    {_detail_rows([
        ("Quote", quote_number),
        ("Total", format_money(total, currency)),
        ("Valid until", valid_until.strftime("%d %B %Y") if valid_until else "No expiry"),
    ])}
    """

    return get_base_template(
        title=f"Quote {escape(quote_number)}",
        preview_text=f"Quote from {escape(company_name)}",
        content_sections=content,
        cta_url=view_link,
        cta_label="View Quote",
    )


def quote_response_template(
    company_name: str,
    quote_number: str,
    customer_name: str,
    accepted: bool,
    reason: Optional[str] = None,
) -> str:
    """Tells the company a customer accepted or declined a quote"""
    outcome = "accepted" if accepted else "declined"
    reason_block = ""
    if reason:
        reason_block = f"""
    <mj-text color="{THEME['text_muted']}">
      Reason given: {escape(reason)}
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hi {escape(company_name)} team,
    </mj-text>

    <mj-text>
      {escape(customer_name)} has {outcome} quote <strong>{escape(quote_number)}</strong>.
    </mj-text>
    {reason_block}
    """

    return get_base_template(
        title=f"Quote {outcome.capitalize()}",
        preview_text=f"{escape(customer_name)} {outcome} {escape(quote_number)}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/quotes",
        cta_label="View Quotes",
        is_user_email=True,
    )


def invoice_issued_template(
    customer_name: str,
    company_name: str,
    invoice_number: str,
    total: float,
    currency: str,
    due_at: Optional[datetime],
) -> str:
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      {escape(company_name)} has issued you an invoice.
    </mj-text>
    {_detail_rows([
        ("Invoice", invoice_number),
        ("Amount due", format_money(total, currency)),
        ("Due date", due_at.strftime("%d %B %Y") if due_at else "On receipt"),
    ])}
    """

    return get_base_template(
        title="New Invoice",
        preview_text=f"Invoice {escape(invoice_number)} from {escape(company_name)}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/portal",
        cta_label="View in Customer Portal",
    )


def payment_reminder_template(
    customer_name: str,
    company_name: str,
    invoice_number: str,
    amount_due: float,
    currency: str,
    due_at: Optional[datetime],
    days_overdue: int,
) -> str:
    if days_overdue > 0:
        lead = f"Invoice {escape(invoice_number)} is now {days_overdue} day(s) overdue."
    else:
        lead = f"This is a friendly reminder that invoice {escape(invoice_number)} is awaiting payment."
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      {lead}
    </mj-text>
    {_detail_rows([
        ("Invoice", invoice_number),
        ("Amount due", format_money(amount_due, currency)),
        ("Due date", due_at.strftime("%d %B %Y") if due_at else "On receipt"),
        ("From", company_name),
    ])}
    """

    return get_base_template(
        title="Payment Reminder",
        preview_text=f"Reminder: invoice {escape(invoice_number)}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/portal",
        cta_label="View in Customer Portal",
    )


def staff_message_template(recipient_name: str, sender_name: str, subject: str, body: str) -> str:
    paragraphs = "".join(
        f"<mj-text>{escape(line)}</mj-text>" for line in body.splitlines() if line.strip()
    )
    content = f"""
    <mj-text>
      Hi {escape(recipient_name)},
    </mj-text>

    <mj-text color="{THEME['text_muted']}">
      {escape(sender_name)} sent you a message:
    </mj-text>

    {paragraphs}
    """

    return get_base_template(
        title=escape(subject),
        preview_text=f"Message from {escape(sender_name)}",
        content_sections=content,
    )


def portal_login_code_template(customer_name: str, code: str) -> str:
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      Use this code to sign in to your customer portal. It expires in 15 minutes.
    </mj-text>

    <mj-text align="center" font-size="36px" font-weight="700" color="{THEME['text_primary']}" letter-spacing="8px" font-family="'Courier New', monospace" padding="16px 0">
      {code}
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't request this code, you can safely ignore this email.
    </mj-text>
    """

    return get_base_template(
        title="Your Sign-In Code",
        preview_text=f"Your sign-in code is {code}",
        content_sections=content,
    )
