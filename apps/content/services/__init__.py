"""Services for site content business logic."""

from .exceptions import (
    ContentServiceError,
    UnknownSettingSectionError,
    InvalidFeedbackTokenError,
    FeedbackNotAllowedError,
    UploadRejectedError,
)
from .site_settings import (
    DEFAULT_SETTINGS,
    get_setting,
    get_all_settings,
    get_setting_value,
    update_setting,
    get_admin_email,
    admin_notification_enabled,
)
from .feedback import (
    generate_feedback_token,
    verify_feedback_token,
    build_feedback_url,
    submit_feedback,
)
from .uploads import store_upload
from .policies import get_policy_sections

__all__ = [
    # Exceptions
    'ContentServiceError',
    'UnknownSettingSectionError',
    'InvalidFeedbackTokenError',
    'FeedbackNotAllowedError',
    'UploadRejectedError',
    # Settings
    'DEFAULT_SETTINGS',
    'get_setting',
    'get_all_settings',
    'get_setting_value',
    'update_setting',
    'get_admin_email',
    'admin_notification_enabled',
    # Feedback
    'generate_feedback_token',
    'verify_feedback_token',
    'build_feedback_url',
    'submit_feedback',
    # Uploads & policies
    'store_upload',
    'get_policy_sections',
]
