"""Email service using Resend for collaboration invitations."""

from __future__ import annotations

import logging
from html import escape

import resend

from playbooq import config
from playbooq.errors import DownstreamError, ValidationError
from playbooq.models.collaborator import PERMISSION_LEVELS

logger = logging.getLogger(__name__)

# Initialize Resend with API key
resend.api_key = config.settings.RESEND_API_KEY

_PERMISSION_LABELS = {
    "owner": "👑 Owner",
    "edit": "✏️ Edit",
    "view": "👁️ View",
}

_PERMISSION_BLURBS = {
    "owner": "As an owner, you'll have full access to the playbook, including the ability to manage other collaborators.",
    "edit": "With edit permissions, you can view and modify the playbook content.",
    "view": "With view permissions, you can read and review the playbook content.",
}


def invitation_accept_url(collaborator_id: str) -> str:
    return f"{config.settings.APP_URL}/invite/{collaborator_id}"


def render_invitation(
    accept_url: str,
    inviter_name: str,
    inviter_email: str,
    playbook_title: str,
    permission_level: str,
) -> str:
    """Render the invitation email body. All interpolated values are HTML-escaped."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>Collaboration Invitation - Playbooq.AI</title>
        <style>
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
                line-height: 1.6;
                color: #333;
                max-width: 600px;
                margin: 0 auto;
                padding: 20px;
            }}
            .header {{
                background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
                color: white;
                padding: 30px;
                text-align: center;
                border-radius: 8px 8px 0 0;
            }}
            .content {{
                background: #ffffff;
                padding: 30px;
                border: 1px solid #e5e7eb;
                border-top: none;
            }}
            .footer {{
                background: #f9fafb;
                padding: 20px 30px;
                text-align: center;
                border-radius: 0 0 8px 8px;
                border: 1px solid #e5e7eb;
                border-top: none;
                font-size: 14px;
                color: #6b7280;
            }}
            .cta-button {{
                display: inline-block;
                background: #3b82f6;
                color: white;
                padding: 12px 24px;
                text-decoration: none;
                border-radius: 6px;
                font-weight: 600;
                margin: 20px 0;
            }}
            .permission-badge {{
                display: inline-block;
                padding: 4px 12px;
                border-radius: 20px;
                font-size: 12px;
                font-weight: 600;
                text-transform: uppercase;
            }}
            .permission-owner {{ background: #fef3c7; color: #92400e; }}
            .permission-edit {{ background: #dbeafe; color: #1e40af; }}
            .permission-view {{ background: #f3f4f6; color: #374151; }}
            .info-box {{
                background: #f8fafc;
                border: 1px solid #e2e8f0;
                border-radius: 6px;
                padding: 16px;
                margin: 20px 0;
            }}
        </style>
    </head>
    <body>
        <div class="header">
            <h1 style="margin: 0; font-size: 24px;">🤝 Collaboration Invitation</h1>
            <p style="margin: 10px 0 0 0; opacity: 0.9;">You've been invited to collaborate on a playbook</p>
        </div>
        <div class="content">
            <p>Hi there!</p>
            <p><strong>{escape(inviter_name)}</strong> ({escape(inviter_email)}) has invited you to collaborate on the playbook:</p>
            <div class="info-box">
                <h3 style="margin: 0 0 8px 0; font-size: 18px;">📋 {escape(playbook_title)}</h3>
                <p style="margin: 0;">
                    Permission Level:
                    <span class="permission-badge permission-{permission_level}">{_PERMISSION_LABELS[permission_level]}</span>
                </p>
            </div>
            <p>{escape(_PERMISSION_BLURBS[permission_level])}</p>
            <div style="text-align: center;">
                <a href="{escape(accept_url)}" class="cta-button">Accept Invitation</a>
            </div>
            <p style="font-size: 14px; color: #6b7280; margin-top: 30px;">
                <strong>Don't have an account?</strong> No problem! You can sign up for Playbooq.AI when you click the accept button above.
            </p>
        </div>
        <div class="footer">
            <p style="margin: 0;">
                This invitation was sent by Playbooq.AI.<br>
                If you didn't expect this invitation, you can safely ignore this email.
            </p>
        </div>
    </body>
    </html>
    """


async def send_invitation(
    collaborator_id: str,
    inviter_name: str,
    inviter_email: str,
    playbook_title: str,
    permission_level: str,
    invited_email: str,
) -> str | None:
    """
    Send a collaboration invitation email via Resend.

    Args:
        collaborator_id: Pending collaborator row the accept link points at
        inviter_name: Shown as the sender of the invitation
        inviter_email: Shown next to the inviter's name
        playbook_title: Title of the shared playbook
        permission_level: owner, edit or view
        invited_email: Recipient address

    Returns:
        Resend message id, if the provider returned one

    Raises:
        ValidationError: If a field is missing or the permission level is unknown
        DownstreamError: If the provider rejects the send
    """
    if not all([collaborator_id, inviter_name, inviter_email, playbook_title, invited_email]):
        raise ValidationError("Missing required fields")
    if permission_level not in PERMISSION_LEVELS:
        raise ValidationError("Invalid permission level")

    accept_url = invitation_accept_url(collaborator_id)

    text_content = f"""
    {inviter_name} ({inviter_email}) has invited you to collaborate on '{playbook_title}'.

    Permission level: {permission_level}

    Accept the invitation:
    {accept_url}

    If you didn't expect this invitation, you can safely ignore this email.
    """

    params = {
        "from": config.settings.EMAIL_FROM,
        "to": [invited_email],
        "subject": f"{inviter_name} invited you to collaborate on '{playbook_title}'",
        "html": render_invitation(accept_url, inviter_name, inviter_email, playbook_title, permission_level),
        "text": text_content,
    }

    logger.info("Sending invitation for collaborator %s", collaborator_id)
    try:
        response = resend.Emails.send(params)
    except Exception as e:
        logger.error("Resend rejected invitation %s: %s", collaborator_id, e)
        raise DownstreamError(f"Failed to send invitation email: {e}") from e

    message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
    logger.info("Invitation sent for collaborator %s (message %s)", collaborator_id, message_id)
    return message_id
