"""Fixed verification and welcome email templates."""

from datetime import datetime, timezone
from html import escape

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }
    .content { background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px; }
    .button { display: inline-block; padding: 15px 30px; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; text-decoration: none; border-radius: 5px; margin: 20px 0; font-weight: bold; }
    .footer { text-align: center; margin-top: 20px; color: #666; font-size: 12px; }
    .warning { background: #fff3cd; border-left: 4px solid #ffc107; padding: 15px; margin: 20px 0; }
    .feature { background: white; padding: 15px; margin: 10px 0; border-radius: 5px; border-left: 4px solid #667eea; }
"""

VERIFICATION_SUBJECT = "Verify Your Email - AITWY"
WELCOME_SUBJECT = "Welcome to AITWY - Your Account is Active!"


def verification_url(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/verify-email?token={token}"


def login_url(frontend_url: str) -> str:
    return f"{frontend_url.rstrip('/')}/login"


def _year() -> int:
    return datetime.now(timezone.utc).year


def render_verification(name: str, url: str) -> tuple[str, str]:
    """Render the verification email.

    Returns:
        Tuple of (text_body, html_body)
    """
    safe_name = escape(name)
    safe_url = escape(url, quote=True)

    html = f"""<!DOCTYPE html>
<html>
<head><style>{_STYLE}</style></head>
<body>
  <div class="container">
    <div class="header"><h1>Welcome to AITWY!</h1></div>
    <div class="content">
      <h2>Hi {safe_name},</h2>
      <p>Thank you for signing up! We're excited to have you on board.</p>
      <p>To complete your registration and activate your account, please verify your email address by clicking the button below:</p>
      <div style="text-align: center;">
        <a href="{safe_url}" class="button">Verify Email Address</a>
      </div>
      <p>Or copy and paste this link into your browser:</p>
      <p style="background: #fff; padding: 10px; border: 1px solid #ddd; word-break: break-all;">{safe_url}</p>
      <div class="warning"><strong>Important:</strong> This verification link will expire in 24 hours.</div>
      <p>If you didn't create an account with AITWY, please ignore this email.</p>
      <p>Best regards,<br>The AITWY Team</p>
    </div>
    <div class="footer">
      <p>&copy; {_year()} AITWY. All rights reserved.</p>
      <p>This is an automated email, please do not reply.</p>
    </div>
  </div>
</body>
</html>
"""

    text = (
        f"Hi {name},\n\n"
        "Thank you for signing up for AITWY!\n\n"
        "To complete your registration and activate your account, please verify "
        "your email address by clicking the link below:\n\n"
        f"{url}\n\n"
        "This verification link will expire in 24 hours.\n\n"
        "If you didn't create an account with AITWY, please ignore this email.\n\n"
        "Best regards,\n"
        "The AITWY Team\n"
    )
    return text, html


def render_welcome(name: str, url: str) -> tuple[str, str]:
    """Render the welcome email sent after verification.

    Returns:
        Tuple of (text_body, html_body)
    """
    safe_name = escape(name)
    safe_url = escape(url, quote=True)

    html = f"""<!DOCTYPE html>
<html>
<head><style>{_STYLE}</style></head>
<body>
  <div class="container">
    <div class="header"><h1>Welcome to AITWY!</h1></div>
    <div class="content">
      <h2>Hi {safe_name},</h2>
      <p>Your email has been verified and your account is now active!</p>
      <p>You can now access all features of AITWY.</p>
      <div style="text-align: center;">
        <a href="{safe_url}" class="button">Login to Your Account</a>
      </div>
      <h3>What's Next?</h3>
      <div class="feature"><strong>Explore Features</strong><br>Discover all the features AITWY has to offer.</div>
      <div class="feature"><strong>Secure Your Account</strong><br>Make sure to use a strong password and keep it safe.</div>
      <div class="feature"><strong>Stay Updated</strong><br>We'll keep you informed about new features and updates.</div>
      <p>If you have any questions, feel free to reach out to our support team.</p>
      <p>Best regards,<br>The AITWY Team</p>
    </div>
    <div class="footer"><p>&copy; {_year()} AITWY. All rights reserved.</p></div>
  </div>
</body>
</html>
"""

    text = (
        f"Hi {name},\n\n"
        "Your email has been verified and your account is now active!\n\n"
        "You can now login and access all features of AITWY.\n\n"
        f"Login here: {url}\n\n"
        "Best regards,\n"
        "The AITWY Team\n"
    )
    return text, html
