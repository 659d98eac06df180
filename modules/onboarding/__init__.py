"""DM onboarding flow: questions, sessions, verification and finalisation."""
