"""System tray icon with a Quit action."""
import logging
import os
from typing import Callable, Optional

from PIL import Image

from .config import APP_NAME, DEFAULT_IMAGES_DIR, TRAY_ICON_FILE

logger = logging.getLogger(__name__)

ICON_SIZE = (64, 64)
ICON_COLOR = (33, 150, 243, 255)


def load_icon_image(icon_path: Optional[str] = None) -> Image.Image:
    """Load the tray image, or draw a plain square when the file is missing."""
    path = icon_path or os.path.join(DEFAULT_IMAGES_DIR, TRAY_ICON_FILE)
    if os.path.exists(path):
        return Image.open(path)
    logger.debug("Tray icon %s not found, using generated icon", path)
    return Image.new('RGBA', ICON_SIZE, ICON_COLOR)


class TrayIcon:
    """
    Owns the pystray icon. run() blocks in the UI loop until Quit is chosen.

    pystray picks its platform backend at import time, so it is imported when
    the icon is built rather than with this module.
    """

    def __init__(self, on_quit: Optional[Callable[[], None]] = None,
                 icon_path: Optional[str] = None) -> None:
        self._on_quit = on_quit
        self._icon_path = icon_path
        self._icon = None

    def _build(self):
        import pystray

        menu = pystray.Menu(pystray.MenuItem('Quit', self._quit))
        return pystray.Icon(
            'notify_listener',
            load_icon_image(self._icon_path),
            title=APP_NAME,
            menu=menu,
        )

    def _quit(self, icon, item) -> None:
        logger.info("Quit selected from tray menu")
        if self._on_quit is not None:
            self._on_quit()
        icon.stop()

    def run(self) -> None:
        self._icon = self._build()
        self._icon.run()

    def stop(self) -> None:
        if self._icon is not None:
            self._icon.stop()
