from datetime import datetime, timezone
from html import escape

PASSWORD_RESET_SUBJECT = "Reset your password"

_PASSWORD_RESET_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  </head>
  <body style="margin: 0; background-color: #f4f4f4; padding: 15px; font-family: Segoe UI, Tahoma, Geneva, Verdana, sans-serif;">
    <div style="width: 100%; max-width: 640px; background-color: #ffffff; padding: 30px 25px; margin: auto; box-sizing: border-box;">
      <div style="text-align: center">
        <h1 style="margin: 0; font-size: 30px; font-weight: 700; color: #6366f1">{app_name}</h1>
      </div>
      <div style="margin-top: 25px; text-align: center">
        <h2 style="margin: 0; font-size: 20px; font-weight: 500; color: #4b4b4b">Reset Your Password</h2>
        <p style="margin: 0; margin-top: 20px; font-size: 15px; line-height: 1.5">
          We have received a request to reset your password. Use the button below to create a new
          password. The link expires in {expires_minutes} minutes.
        </p>
        <a style="display: inline-block; padding: 12px 25px; margin-top: 25px; background-color: #6366f1; color: #ffffff; text-decoration: none; border-radius: 5px; font-size: 15px; font-weight: 500;" href="{reset_url}">Reset Password</a>
        <p style="margin: 0; margin-top: 20px; font-size: 15px; line-height: 1.5">
          If you did not request a password reset, please ignore this email.
        </p>
      </div>
      <div style="margin-top: 40px; text-align: center; color: #888; font-size: 12px">
        <p style="margin: 0">&copy; {year} {app_name}. All rights reserved.</p>
      </div>
    </div>
  </body>
</html>
"""


def render_password_reset_email(
    reset_url: str, *, app_name: str, expires_minutes: int
) -> str:
    return _PASSWORD_RESET_TEMPLATE.format(
        app_name=escape(app_name),
        reset_url=escape(reset_url, quote=True),
        expires_minutes=expires_minutes,
        year=datetime.now(timezone.utc).year,
    )
