"""Engine configuration loaded from environment variables.

Two PostgREST databases are involved: the main database (coordinators,
students, attendance ledger) and the schedule database (one table per
cohort, mentor details).
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class EngineConfig(BaseSettings):
    """Engine configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Main database (supermentor_details, onboarding, mentor_attendance)
    main_db_url: str = Field(
        default="",
        description="Base URL of the main PostgREST/Supabase project",
    )
    main_db_key: str = Field(
        default="",
        description="Service role key for the main database",
    )

    # Schedule database (per-cohort schedule tables, Mentor Details)
    schedule_db_url: str = Field(
        default="",
        description="Base URL of the schedule PostgREST/Supabase project",
    )
    schedule_db_key: str = Field(
        default="",
        description="Service role key for the schedule database",
    )

    # Channel A: transactional email
    resend_api_key: str = Field(
        default="",
        description="Resend API key; email is not sent when empty",
    )
    resend_api_url: str = Field(
        default="https://api.resend.com/emails",
        description="Resend send-email endpoint",
    )
    email_from: str = Field(
        default="MentiBY <onboarding@resend.dev>",
        description="Sender address for notification emails",
    )

    # Channel B: WhatsApp Cloud API templates
    whatsapp_api_url: str = Field(
        default="https://graph.facebook.com/v19.0",
        description="WhatsApp Cloud API base URL",
    )
    whatsapp_phone_number_id: str = Field(
        default="",
        description="Sender phone number id; WhatsApp is not sent when empty",
    )
    whatsapp_access_token: str = Field(
        default="",
        description="WhatsApp Cloud API bearer token",
    )
    whatsapp_template_language: str = Field(
        default="en",
        description="Language code for template messages",
    )
    whatsapp_reschedule_supermentor_template: str = Field(
        default="class_rescheduled_supermentor",
    )
    whatsapp_reschedule_student_template: str = Field(
        default="class_rescheduled_student",
    )
    whatsapp_swap_template: str = Field(default="mentor_swap_alert")
    whatsapp_new_mentor_template: str = Field(default="class_assigned_mentor")

    default_country_code: str = Field(
        default="91",
        description="Country code prefixed to domestic phone numbers",
    )

    # Outbound pacing between recipients (seconds)
    coordinator_pacing_seconds: float = Field(default=0.3, ge=0)
    student_pacing_seconds: float = Field(default=0.1, ge=0)
    swap_pacing_seconds: float = Field(default=0.5, ge=0)

    http_timeout_seconds: float = Field(
        default=30.0,
        description="Total timeout for a single HTTP request",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: EngineConfig | None = None


def get_config() -> EngineConfig:
    """Get the engine configuration singleton.

    Returns:
        EngineConfig: Engine configuration instance
    """
    global _config
    if _config is None:
        _config = EngineConfig()
    return _config
