"""Verification email content.

The verification URL is built from ``verification_url_base`` with the
token as a query parameter.
"""

import html
from dataclasses import dataclass
from urllib.parse import urlencode


@dataclass(frozen=True, slots=True, kw_only=True)
class VerificationMessage:
    """Rendered verification email."""

    subject: str
    html_body: str
    text_body: str
    verification_url: str


def build_verification_url(base_url: str, token: str) -> str:
    """Append the token to the verification page URL."""
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'token': token})}"


def build_verification_message(
    *,
    app_name: str,
    base_url: str,
    token: str,
    expires_in_hours: int,
) -> VerificationMessage:
    """Render the verification email for one token.

    Args:
        app_name: Product name shown in the subject and body.
        base_url: Verification page URL.
        token: Raw secret token.
        expires_in_hours: Token lifetime shown to the user.

    Returns:
        VerificationMessage with HTML and plain text bodies.
    """
    url = build_verification_url(base_url, token)
    safe_url = html.escape(url, quote=True)
    safe_name = html.escape(app_name)
    subject = f"Verify your email address for {app_name}"

    text_body = (
        f"Welcome to {app_name}!\n\n"
        "Please verify your email address by opening the link below:\n\n"
        f"{url}\n\n"
        f"This link expires in {expires_in_hours} hours and can be used once.\n"
        "If you did not create an account, you can ignore this email.\n"
    )
    html_body = (
        "<html><body>"
        f"<h1>Welcome to {safe_name}!</h1>"
        "<p>Please verify your email address by clicking the button below.</p>"
        f'<p><a href="{safe_url}">Verify email address</a></p>'
        f"<p>Or copy this link into your browser:<br>{safe_url}</p>"
        f"<p>This link expires in {expires_in_hours} hours and can be used once.</p>"
        "<p>If you did not create an account, you can ignore this email.</p>"
        "</body></html>"
    )
    return VerificationMessage(
        subject=subject,
        html_body=html_body,
        text_body=text_body,
        verification_url=url,
    )
