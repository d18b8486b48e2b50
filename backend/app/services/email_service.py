"""Email notification service using Resend API.

Every sender returns True/False and never raises, so callers can notify after
their database work has committed without risking it.
"""
import logging
from typing import Optional

import resend

from app.config import settings
from app.models.asset import Asset
from app.models.contact import ContactTicket
from app.models.individual_payment import IndividualPayment
from app.models.plan import Plan
from app.models.subscription import Subscription
from app.models.user import User

logger = logging.getLogger(__name__)

# Configure Resend API
resend.api_key = settings.RESEND_API_KEY

BRAND_PRIMARY = "#0f766e"  # Teal
BRAND_DARK = "#1f2937"     # Dark gray
BRAND_LIGHT = "#f9fafb"    # Light gray


def get_email_template(title: str, content: str, cta_text: Optional[str] = None, cta_url: Optional[str] = None) -> str:
    """
    Wrap ``content`` in the branded email layout.

    Args:
        title: Heading shown in the header band
        content: HTML body
        cta_text: Optional call-to-action button text
        cta_url: Optional call-to-action button URL
    """
    cta_button = ""
    if cta_text and cta_url:
        cta_button = f"""
        <div style="text-align: center; margin: 30px 0;">
            <a href="{cta_url}" style="display: inline-block; background-color: {BRAND_PRIMARY}; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; font-weight: 600;">
                {cta_text}
            </a>
        </div>
        """

    return f"""
    <!DOCTYPE html>
    <html>
        <body style="margin: 0; padding: 0; font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; background-color: {BRAND_LIGHT};">
            <table width="100%" cellpadding="0" cellspacing="0" style="padding: 40px 20px;">
                <tr>
                    <td align="center">
                        <table width="600" cellpadding="0" cellspacing="0" style="background-color: white; border-radius: 12px;">
                            <tr>
                                <td style="background-color: {BRAND_PRIMARY}; padding: 32px 40px; text-align: center;">
                                    <h2 style="margin: 0; color: white; font-size: 22px;">{title}</h2>
                                </td>
                            </tr>
                            <tr>
                                <td style="padding: 40px; color: {BRAND_DARK}; font-size: 16px; line-height: 1.6;">
                                    {content}
                                    {cta_button}
                                </td>
                            </tr>
                        </table>
                    </td>
                </tr>
            </table>
        </body>
    </html>
    """


def _send(to: str, subject: str, html: str) -> None:
    resend.Emails.send({
        "from": settings.EMAIL_FROM,
        "to": to,
        "subject": subject,
        "html": html,
    })


class EmailService:
    """Service for sending email notifications via Resend."""

    @staticmethod
    def send_purchase_invoice_email(user: User, asset: Asset, payment: IndividualPayment) -> bool:
        """
        Send the invoice for a completed asset purchase.

        Args:
            user: Buyer
            asset: Purchased asset
            payment: Completed payment

        Returns:
            True if email sent successfully, False otherwise
        """
        try:
            if not settings.RESEND_API_KEY:
                logger.warning("RESEND_API_KEY not configured, skipping email")
                return False

            discount_row = ""
            if payment.discount_amount:
                discount_row = f"<tr><td>Premium discount</td><td align=\"right\">-${payment.discount_amount:.2f}</td></tr>"

            content = f"""
            <p>Hi <strong>{user.name}</strong>,</p>
            <p>Thanks for your purchase. Here is your receipt.</p>
            <table width="100%" cellpadding="6" cellspacing="0" style="background-color: {BRAND_LIGHT}; border-radius: 8px;">
                <tr><td>Asset</td><td align="right"><strong>{asset.title}</strong></td></tr>
                <tr><td>Price</td><td align="right">${payment.original_price:.2f}</td></tr>
                {discount_row}
                <tr><td>Total paid</td><td align="right"><strong>${payment.final_price:.2f}</strong></td></tr>
                <tr><td>Payment ID</td><td align="right" style="font-family: monospace;">{payment.uuid[:8]}...</td></tr>
            </table>
            """

            _send(
                user.email,
                f"Your receipt for {asset.title}",
                get_email_template(
                    title="Purchase confirmed",
                    content=content,
                    cta_text="Download your asset",
                    cta_url=f"{settings.FRONTEND_URL}/assets/{asset.uuid}",
                ),
            )
            logger.info(f"Invoice email sent to {user.email} for payment {payment.uuid}")
            return True

        except Exception as e:
            logger.error(f"Failed to send invoice email: {e}")
            return False

    @staticmethod
    def send_subscription_confirmation_email(user: User, plan: Plan, subscription: Subscription) -> bool:
        """Confirm a newly created subscription."""
        try:
            if not settings.RESEND_API_KEY:
                logger.warning("RESEND_API_KEY not configured, skipping email")
                return False

            period_end = subscription.current_period_end.strftime("%B %d, %Y")
            content = f"""
            <p>Hi <strong>{user.name}</strong>,</p>
            <p>Your <strong>{plan.name}</strong> subscription ({plan.billing_cycle}) is active.</p>
            <p>Premium assets are now discounted for you. Your current period ends on {period_end}.</p>
            """

            _send(
                user.email,
                f"Welcome to {plan.name}",
                get_email_template(
                    title="Subscription active",
                    content=content,
                    cta_text="Browse assets",
                    cta_url=f"{settings.FRONTEND_URL}/assets",
                ),
            )
            logger.info(f"Subscription email sent to {user.email} for subscription {subscription.uuid}")
            return True

        except Exception as e:
            logger.error(f"Failed to send subscription email: {e}")
            return False

    @staticmethod
    def send_contact_reply_email(user: User, ticket: ContactTicket) -> bool:
        """Forward an admin reply on a support ticket."""
        try:
            if not settings.RESEND_API_KEY:
                logger.warning("RESEND_API_KEY not configured, skipping email")
                return False

            content = f"""
            <p>Hi <strong>{user.name}</strong>,</p>
            <p>Our team replied to your message <strong>{ticket.subject}</strong>:</p>
            <div style="background-color: {BRAND_LIGHT}; padding: 20px; border-radius: 8px; border-left: 4px solid {BRAND_PRIMARY};">
                {ticket.admin_reply}
            </div>
            """

            _send(
                user.email,
                f"Re: {ticket.subject}",
                get_email_template(title="Support reply", content=content),
            )
            logger.info(f"Contact reply email sent to {user.email} for ticket {ticket.uuid}")
            return True

        except Exception as e:
            logger.error(f"Failed to send contact reply email: {e}")
            return False

    @staticmethod
    def send_password_reset_email(user: User, reset_url: str) -> bool:
        """Send the password reset link."""
        try:
            if not settings.RESEND_API_KEY:
                logger.warning("RESEND_API_KEY not configured, skipping email")
                return False

            content = f"""
            <p>Hi <strong>{user.name}</strong>,</p>
            <p>We received a request to reset your password. The link below expires in
            {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.</p>
            <p>If you did not ask for this, you can ignore this email.</p>
            """

            _send(
                user.email,
                "Password reset link",
                get_email_template(
                    title="Reset your password",
                    content=content,
                    cta_text="Reset password",
                    cta_url=reset_url,
                ),
            )
            logger.info(f"Password reset email sent to {user.email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send password reset email: {e}")
            return False
