import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from urllib.parse import quote
from core.config import settings
from utils.logger import get_logger, mask_email

# Setup logger
logger = get_logger(__name__)


def send_email(to_email: str, subject: str, body: str):
    # Skip email sending in test environment
    if settings.ENV == "testing":
        logger.info(
            "[TEST MODE] Email skipped",
            extra={"recipient": mask_email(to_email), "subject": subject}
        )
        return

    logger.debug(
        "Attempting to send email",
        extra={"recipient": mask_email(to_email), "subject": subject}
    )

    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = settings.MAIL_FROM
    message["To"] = to_email
    message.attach(MIMEText(body, "html"))

    try:
        with smtplib.SMTP(settings.MAIL_SERVER, settings.MAIL_PORT, timeout=settings.MAIL_TIMEOUT_SECONDS) as server:
            server.starttls()
            server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
            server.sendmail(settings.MAIL_FROM, to_email, message.as_string())

        logger.info(
            "Email sent successfully",
            extra={"recipient": mask_email(to_email), "subject": subject}
        )

    except smtplib.SMTPException as e:
        logger.error(
            f"Failed to send email: {str(e)}",
            extra={
                "recipient": mask_email(to_email),
                "subject": subject,
                "error": str(e),
                "error_type": type(e).__name__
            },
            exc_info=True
        )
        raise


def deliver(to_email: str, subject: str, body: str) -> bool:
    """
    Best-effort send. Returns False instead of raising.

    Blocks for up to MAIL_TIMEOUT_SECONDS; async routes call it through
    run_in_threadpool.

    Checkout and password-setup flows must not fail because the mail server
    is down; the customer can always ask for the link again.
    """
    try:
        send_email(to_email=to_email, subject=subject, body=body)
        return True
    except (smtplib.SMTPException, OSError):
        # send_email already logged SMTP errors; connection errors land here
        logger.warning(
            "Email dispatch failed",
            extra={"recipient": mask_email(to_email), "subject": subject}
        )
        return False


def build_password_setup_url(raw_token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/set-password?token={quote(raw_token)}"


def send_password_setup_email(to_email: str, name: str | None, raw_token: str) -> bool:
    setup_url = build_password_setup_url(raw_token)
    first_name = name.split(" ")[0] if name else "there"
    hours = settings.PASSWORD_SETUP_TOKEN_EXPIRE_HOURS

    subject = "Set your password"
    email_body = f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #000;">Set Your Password</h2>
            <p>Hi {first_name},</p>
            <p>Your account has been created with your order. To track your orders,
            set a password using the button below.</p>

            <div style="margin: 30px 0;">
                <a href="{setup_url}"
                style="display: inline-block; padding: 14px 28px; background-color: #000;
                        color: white; text-decoration: none; border-radius: 8px; font-weight: bold;">
                    Set Your Password
                </a>
            </div>

            <p style="color: #999; font-size: 14px;">
                Or copy and paste this link into your browser:<br>{setup_url}
            </p>
            <p style="color: #999; font-size: 12px;">
                This link expires in {hours} hours. If you didn't place an order with us, you can ignore this email.
            </p>
        </div>
    </body>
    </html>
    """

    return deliver(to_email, subject, email_body)


def send_order_confirmation_email(to_email: str, order_id: str, total, currency: str) -> bool:
    subject = "Your order is confirmed"
    email_body = f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #000;">Thank you for your order</h2>
            <p>Order <strong>{order_id}</strong> has been received.</p>
            <p>Total charged: <strong>{total} {currency}</strong></p>
            <p>We'll email you again when it ships.</p>
        </div>
    </body>
    </html>
    """

    return deliver(to_email, subject, email_body)
