from __future__ import annotations

from html import escape

from ..db.models import ResumeStatus

_BUTTON_STYLE = (
    "display: inline-block; padding: 12px 24px; background-color: #007bff; "
    "color: white; text-decoration: none; border-radius: 5px; margin: 20px 0;"
)
_NOTE_STYLE = "color: #666; font-size: 14px;"

STATUS_MESSAGES: dict[ResumeStatus, str] = {
    ResumeStatus.APPROVED: "Congratulations! Your resume has been approved.",
    ResumeStatus.NEEDS_REVISION: "Your resume needs some revisions before approval.",
    ResumeStatus.REJECTED: "Unfortunately, your resume has been rejected.",
    ResumeStatus.UNDER_REVIEW: "Your resume is currently under review.",
}
FALLBACK_STATUS_MESSAGE = "Your resume status has been updated."


def _wrap(body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f"{body}</div>"
    )


def magic_link_email(name: str, link: str, ttl_minutes: int) -> tuple[str, str]:
    subject = "Login to Resume Review Platform"
    body = (
        '<h2 style="color: #333;">Welcome to Resume Review Platform</h2>'
        f"<p>Hello {escape(name)},</p>"
        "<p>Click the link below to login to your account:</p>"
        f'<a href="{escape(link, quote=True)}" style="{_BUTTON_STYLE}">Login to Platform</a>'
        f'<p style="{_NOTE_STYLE}">'
        f"This link will expire in {ttl_minutes} minutes for security reasons.</p>"
        f'<p style="{_NOTE_STYLE}">'
        "If you didn't request this login, please ignore this email.</p>"
    )
    return subject, _wrap(body)


def status_update_email(
    name: str,
    status: ResumeStatus,
    dashboard_url: str,
    notes: str | None = None,
) -> tuple[str, str]:
    subject = f"Resume Status Update: {status.value.replace('_', ' ').upper()}"
    message = STATUS_MESSAGES.get(status, FALLBACK_STATUS_MESSAGE)
    notes_block = f"<p><strong>Review Notes:</strong> {escape(notes)}</p>" if notes else ""
    body = (
        '<h2 style="color: #333;">Resume Status Update</h2>'
        f"<p>Hello {escape(name)},</p>"
        f"<p>{message}</p>"
        f"{notes_block}"
        "<p>You can view your resume status by logging into the platform.</p>"
        f'<a href="{escape(dashboard_url, quote=True)}" style="{_BUTTON_STYLE}">View Dashboard</a>'
    )
    return subject, _wrap(body)


__all__ = ["STATUS_MESSAGES", "magic_link_email", "status_update_email"]
