"""
Email Templates

HTML and plain text bodies for invites, password resets and notification
emails. Every builder returns (subject, html_body, plain_text_body).
"""

from typing import Optional


# =============================================================================
# LAYOUT
# =============================================================================

# Inline styles only
BASE_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{subject}</title>
</head>
<body style="margin:0;padding:24px 0;background:#F5F5F4;font-family:Helvetica,Arial,sans-serif;color:#292524;">
<table role="presentation" width="100%" cellspacing="0" cellpadding="0">
<tr><td align="center">
<table role="presentation" width="560" cellspacing="0" cellpadding="0" style="background:#FFFFFF;border-radius:8px;">
<tr><td style="padding:20px 28px;border-bottom:1px solid #E7E5E4;font-size:18px;font-weight:bold;">Coachboard</td></tr>
<tr><td style="padding:28px;">{content}</td></tr>
</table>
<p style="font-size:12px;color:#78716C;">
Coachboard &middot; <a href="{settings_url}" style="color:#78716C;">Notification settings</a>
</p>
</td></tr>
</table>
</body>
</html>
"""


def _render(subject: str, title: str, body: str, button_label: str, url: str, settings_url: str) -> str:
    content = (
        f'<h2 style="margin:0 0 12px;font-size:20px;">{title}</h2>'
        f'<p style="margin:0 0 20px;line-height:1.5;color:#57534E;">{body}</p>'
        f'<a href="{url}" style="display:inline-block;padding:10px 20px;border-radius:6px;'
        f'background:#0F766E;color:#FFFFFF;text-decoration:none;">{button_label}</a>'
    )
    return BASE_HTML_TEMPLATE.format(subject=subject, content=content, settings_url=settings_url)


# =============================================================================
# ACCOUNT TEMPLATES
# =============================================================================

def build_invite_email(
    business_name: str,
    inviter_name: str,
    invite_url: str,
    settings_url: str,
    role: Optional[str] = None,
) -> tuple[str, str, str]:
    """
    Build team invite email.

    Returns: (subject, html_body, plain_text_body)
    """
    subject = f"You've been invited to join {business_name} on Coachboard"
    role_text = f" as {role}" if role else ""
    body = f"{inviter_name} has invited you to join {business_name}{role_text}."

    html_body = _render(subject, "You're invited", body, "Accept Invitation", invite_url, settings_url)
    plain_text_body = "\n".join([
        body,
        "",
        "Accept the invitation and set your password:",
        invite_url,
        "",
        "This link expires in 7 days.",
    ])
    return subject, html_body, plain_text_body


def build_password_reset_email(reset_url: str, settings_url: str) -> tuple[str, str, str]:
    """
    Build password reset email.

    Returns: (subject, html_body, plain_text_body)
    """
    subject = "Reset your Coachboard password"
    body = "We received a request to reset your password. The link is valid for one hour."

    html_body = _render(subject, "Reset your password", body, "Reset Password", reset_url, settings_url)
    plain_text_body = "\n".join([
        body,
        "",
        reset_url,
        "",
        "If you didn't request this, you can ignore this email.",
    ])
    return subject, html_body, plain_text_body


# =============================================================================
# NOTIFICATION TEMPLATE
# =============================================================================

def build_notification_email(
    title: str,
    message: Optional[str],
    link_url: str,
    settings_url: str,
) -> tuple[str, str, str]:
    """
    Build the email copy of an in-app notification.

    Returns: (subject, html_body, plain_text_body)
    """
    subject = title
    body = message or ""

    html_body = _render(subject, title, body, "Open Coachboard", link_url, settings_url)
    plain_text_lines = [title]
    if body:
        plain_text_lines.extend(["", body])
    plain_text_lines.extend(["", link_url])
    return subject, html_body, "\n".join(plain_text_lines)
