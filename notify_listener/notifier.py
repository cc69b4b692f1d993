"""
Notifier - Desktop toast notifications.

Renders each forwarded NotificationEvent with plyer. The payload's `logo`
is a file name looked up in the images directory (relative to the working
directory); a missing or blank logo falls back to default_toast_logo.png.
"""
import logging
import os
from typing import Optional

from plyer import notification

from .config import APP_NAME, DEFAULT_IMAGES_DIR, DEFAULT_LOGO
from .models import NotificationEvent

logger = logging.getLogger(__name__)

# Seconds the toast stays visible where the platform honours it
TOAST_TIMEOUT = 10


def resolve_logo_path(logo: Optional[str], images_dir: str = DEFAULT_IMAGES_DIR) -> str:
    """
    Resolve the toast logo to an absolute path.

    Args:
        logo: File name from the payload, may be None or blank
        images_dir: Directory holding the images

    Returns:
        Absolute path to the logo, or to the default logo

    Example:
        resolve_logo_path('alert.png')  ->  '<cwd>/images/alert.png'
        resolve_logo_path('  ')         ->  '<cwd>/images/default_toast_logo.png'
    """
    name = logo.strip() if logo else ''
    return os.path.abspath(os.path.join(images_dir, name or DEFAULT_LOGO))


def show_notification(title: str, body_message: str, logo_path: str) -> None:
    """Show one desktop toast."""
    notification.notify(
        title=title,
        message=body_message,
        app_name=APP_NAME,
        app_icon=logo_path,
        timeout=TOAST_TIMEOUT,
    )
    logger.info("Notification shown: %s", title)


class DesktopNotifier:
    """Notification sink passed to the ConnectionManager."""

    def __init__(self, images_dir: str = DEFAULT_IMAGES_DIR) -> None:
        self.images_dir = images_dir

    def __call__(self, event: NotificationEvent) -> None:
        logo_path = resolve_logo_path(event.logo, self.images_dir)
        show_notification(event.title, event.body_message, logo_path)
