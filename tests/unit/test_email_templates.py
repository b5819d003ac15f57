from __future__ import annotations

from backend.app.db.models import ResumeStatus
from backend.app.services.email_templates import magic_link_email, status_update_email


def test_magic_link_email_escapes_name() -> None:
    subject, html = magic_link_email(
        "<b>Ada</b>", "https://resumes.example.com/auth/verify?token=abc", 15
    )

    assert subject == "Login to Resume Review Platform"
    assert "&lt;b&gt;Ada&lt;/b&gt;" in html
    assert "<b>Ada</b>" not in html
    assert 'href="https://resumes.example.com/auth/verify?token=abc"' in html
    assert "expire in 15 minutes" in html


def test_status_update_email() -> None:
    subject, html = status_update_email(
        "Ada",
        ResumeStatus.NEEDS_REVISION,
        "https://resumes.example.com/dashboard",
        notes="Add <metrics>",
    )

    assert subject == "Resume Status Update: NEEDS REVISION"
    assert "needs some revisions" in html
    assert "Add &lt;metrics&gt;" in html
    assert "https://resumes.example.com/dashboard" in html


def test_status_update_email_without_notes() -> None:
    subject, html = status_update_email(
        "Ada", ResumeStatus.APPROVED, "https://resumes.example.com/dashboard"
    )

    assert subject == "Resume Status Update: APPROVED"
    assert "Review Notes" not in html
    assert "approved" in html
