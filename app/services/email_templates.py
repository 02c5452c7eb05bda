"""
Textes des emails transactionnels. Fonctions pures : données → (sujet, corps).
"""
from dataclasses import dataclass
from typing import Optional, NamedTuple


class EmailTemplate(NamedTuple):
    subject: str
    body: str


@dataclass
class LeadNotificationData:
    name: str
    email: str
    created_at: str
    phone: Optional[str] = None
    location: Optional[str] = None


@dataclass
class PaymentNotificationData:
    name: str
    email: str
    amount: str
    currency: str
    tier_name: str
    payment_date: str


def lead_admin_notification(data: LeadNotificationData) -> EmailTemplate:
    subject = f"New Lead: {data.name} - {data.email}"
    body = (
        "A new lead has been created:\n\n"
        f"Name: {data.name}\n"
        f"Email: {data.email}\n"
        f"Phone: {data.phone or 'Not provided'}\n"
        f"Location: {data.location or 'Not provided'}\n"
        f"Created: {data.created_at}\n\n"
        "Please follow up with this lead as appropriate."
    )
    return EmailTemplate(subject, body)


def lead_user_welcome(data: LeadNotificationData) -> EmailTemplate:
    first_name = data.name.split()[0] if data.name else "there"
    body = (
        f"Hi {first_name},\n\n"
        "Thank you for your interest in joining the Diaspora9ja community!\n\n"
        "You're one step away from becoming a member. Complete your payment through "
        "our secure checkout to get instant access to the community platform.\n\n"
        "Welcome aboard!\n"
        "The Diaspora9ja Team"
    )
    return EmailTemplate("Welcome to Diaspora9ja - You're One Step Away!", body)


def payment_admin_notification(data: PaymentNotificationData) -> EmailTemplate:
    subject = f"Payment Received: {data.name} - {data.amount} {data.currency}"
    body = (
        "A payment has been completed:\n\n"
        f"Customer: {data.name}\n"
        f"Email: {data.email}\n"
        f"Amount: {data.amount} {data.currency}\n"
        f"Tier: {data.tier_name}\n"
        f"Payment Date: {data.payment_date}\n\n"
        "---\n"
        "Diaspora9ja Admin System"
    )
    return EmailTemplate(subject, body)


def payment_user_confirmation(data: PaymentNotificationData) -> EmailTemplate:
    body = (
        f"Hi {data.name},\n\n"
        "Your payment has been successfully processed! Welcome to the Diaspora9ja community.\n\n"
        "Payment Details:\n"
        f"Amount: {data.amount} {data.currency}\n"
        f"Membership: {data.tier_name}\n"
        f"Date: {data.payment_date}\n\n"
        "Log in to your account to start exploring and connecting with fellow Nigerians worldwide.\n\n"
        "Best regards,\n"
        "The Diaspora9ja Team"
    )
    return EmailTemplate("Payment Confirmed - Welcome to Diaspora9ja!", body)


def payment_failed_admin_notification(lead_id: str, payment_intent_id: str) -> EmailTemplate:
    subject = f"Payment Failed: lead {lead_id}"
    body = (
        "A payment attempt has failed:\n\n"
        f"Lead: {lead_id}\n"
        f"Payment intent: {payment_intent_id}\n\n"
        "The lead can retry from the checkout page."
    )
    return EmailTemplate(subject, body)
