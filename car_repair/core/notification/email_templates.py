"""
Report-ready email templates.

Dependencies: html (stdlib)
System role: Rendering of notification emails
"""

from dataclasses import dataclass
from html import escape

REPORT_READY_SUBJECT = "Your Car Inspection Report is Ready!"
SERVICE_FOOTER = "Car RepAIr - AI-powered car inspection service"

_REPORT_READY_HTML = """<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; color: #1f2933; background: #f5f7fa; padding: 24px;">
    <div style="max-width: 560px; margin: 0 auto; background: #ffffff; border-radius: 8px; padding: 32px;">
      <h2 style="margin-top: 0;">Hello, {name}!</h2>
      <p>Your car inspection report is ready. Our AI has analysed your photos and prepared a damage assessment with repair cost estimates.</p>
      <p style="text-align: center; margin: 32px 0;">
        <a href="{url}" style="background: #2563eb; color: #ffffff; padding: 12px 28px; border-radius: 6px; text-decoration: none;">View Report</a>
      </p>
      <p style="font-size: 13px; color: #616e7c;">If the button does not work, copy this link into your browser:<br>{url}</p>
      <hr style="border: none; border-top: 1px solid #e4e7eb;">
      <p style="font-size: 12px; color: #9aa5b1;">{footer}</p>
    </div>
  </body>
</html>
"""

_REPORT_READY_TEXT = """Hello, {name}!

Your car inspection report is ready.

View Report: {url}

--
{footer}
"""


@dataclass(frozen=True, slots=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def render_report_ready(name: str | None, report_url: str) -> RenderedEmail:
    """
    Render the report-ready email.

    Args:
        name: Recipient display name ("there" when missing)
        report_url: Link to the report

    Returns:
        RenderedEmail
    """
    display_name = name or "there"
    return RenderedEmail(
        subject=REPORT_READY_SUBJECT,
        html=_REPORT_READY_HTML.format(
            name=escape(display_name),
            url=escape(report_url, quote=True),
            footer=SERVICE_FOOTER,
        ),
        text=_REPORT_READY_TEXT.format(name=display_name, url=report_url, footer=SERVICE_FOOTER),
    )
