"""
Email bodies for every notification template.

Bodies use ``string.Template`` placeholders so inline CSS braces survive.
"""
from dataclasses import dataclass
from html import escape
from string import Template
from typing import Any, Dict

from ..interfaces.notification_interface import NotificationTemplate


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    category: str


_LAYOUT = Template("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>$title</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background: linear-gradient(to right, #4CAF50, #45a049); padding: 20px; text-align: center;">
    <h1 style="color: white; margin: 0;">$title</h1>
  </div>
  <div style="background-color: #f9f9f9; padding: 20px; border-radius: 0 0 5px 5px; box-shadow: 0 2px 5px rgba(0,0,0,0.1);">
    $content
    <p>Best regards,<br>$company_name Team</p>
  </div>
  <div style="text-align: center; margin-top: 20px; color: #888; font-size: 0.8em;">
    <p>This is an automated message, please do not reply to this email.</p>
  </div>
</body>
</html>
""")

_BODIES = {
    NotificationTemplate.VERIFICATION_EMAIL: (
        "Verify your email",
        "Email Verification",
        """<p>Hello,</p>
    <p>Thank you for signing up! Your verification code is:</p>
    <div style="text-align: center; margin: 30px 0;">
      <span style="font-size: 32px; font-weight: bold; letter-spacing: 5px; color: #4CAF50;">$verification_code</span>
    </div>
    <p>Enter this code on the verification page to complete your registration.</p>
    <p>This code will expire in $expires_in_hours hours for security reasons.</p>
    <p>If you didn't create an account with us, please ignore this email.</p>""",
    ),
    NotificationTemplate.WELCOME_EMAIL: (
        "Welcome to $company_name",
        "Welcome Email",
        """<p>Hello $name,</p>
    <p>Your email address has been verified and your account is ready to use.</p>""",
    ),
    NotificationTemplate.PASSWORD_RESET_REQUEST: (
        "Reset your password",
        "Password Reset",
        """<p>Hello,</p>
    <p>We received a request to reset your password. If you didn't make this request, please ignore this email.</p>
    <p>To reset your password, click the button below:</p>
    <div style="text-align: center; margin: 30px 0;">
      <a href="$reset_url" style="background-color: #4CAF50; color: white; padding: 12px 20px; text-decoration: none; border-radius: 5px; font-weight: bold;">Reset Password</a>
    </div>
    <p>This link will expire in $expires_in_hours hour(s) for security reasons.</p>""",
    ),
    NotificationTemplate.PASSWORD_RESET_SUCCESS: (
        "Password Reset Successful",
        "Password Reset",
        """<p>Hello,</p>
    <p>We're writing to confirm that your password has been successfully reset.</p>
    <p>If you did not initiate this password reset, please contact our support team immediately.</p>
    <p>For security reasons, we recommend that you:</p>
    <ul>
      <li>Use a strong, unique password</li>
      <li>Avoid using the same password across multiple sites</li>
    </ul>""",
    ),
}


def render(template: NotificationTemplate, context: Dict[str, Any]) -> RenderedEmail:
    """Render ``template`` with ``context``; missing placeholders are left as-is."""
    subject, category, content = _BODIES[template]
    values = {key: escape(str(value)) for key, value in context.items()}
    subject = Template(subject).safe_substitute(values)
    html = _LAYOUT.safe_substitute(
        title=subject,
        content=Template(content).safe_substitute(values),
        company_name=values.get("company_name", ""),
    )
    return RenderedEmail(subject=subject, html=html, category=category)
