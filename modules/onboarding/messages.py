"""User-facing copy for the DM onboarding flow."""

from __future__ import annotations

WELCOME = (
    "**Welcome to your learning journey!** 🎓\n\n"
    "We're excited to have you here! To get started with your course and unlock access "
    "to your channel, we need to collect a few quick details.\n\n"
    "**Here's what we'll need:**\n"
    "**Step 1:** Your full name\n"
    "**Step 2:** Your email address\n"
    "**Step 3:** Your phone number\n\n"
    "Ready? Click the button below to begin!"
)

SESSION_NOT_FOUND = "❌ Session not found. Please try rejoining the server."
ALREADY_STARTED = "Your onboarding is already in progress. Please answer the latest question in this chat."
ALREADY_SUBMITTED = (
    "Your details have already been submitted. "
    "If you did not receive a confirmation, please contact an administrator for assistance."
)

PROCESSING = "⏳ Processing your information..."

REJECTED = (
    "Hi there! 👋\n\n"
    "The email ID or phone number you entered doesn't match our Scaler records.\n\n"
    "Please double-check and share your registered details with me again.\n\n"
    "If you're still having trouble, please contact our support team through your dashboard "
    "for a quick fix! Guide: https://shorturl.at/hbuuM"
)

RESPONSE_ERROR = "⚠️ An error occurred. Please try again or contact an administrator."
FINALIZE_ERROR = (
    "❌ An error occurred while saving your information. "
    "Please contact an administrator for assistance."
)

CHANNEL_LINK_HINT = "Click the button below to access your course channel:"


def confirmation(role_name: str) -> str:
    return (
        "✅ **All set!** Your information has been saved successfully.\n\n"
        f"You've been assigned the **{role_name}** role and now have access to your course materials.\n\n"
        "Welcome aboard! 🎉"
    )


def channel_welcome(member_id: int) -> str:
    return (
        f"🎉 Welcome to the course, <@{member_id}>! We're excited to have you here. "
        "Feel free to introduce yourself and start learning!"
    )
