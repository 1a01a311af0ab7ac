"""
Main application entry point for AI Media Enhancer
"""
import sys

import asyncio
import logging
from PyQt6.QtWidgets import QApplication, QSplashScreen
from PyQt6.QtCore import Qt, QtMsgType, qInstallMessageHandler
from PyQt6.QtGui import QPixmap, QPainter, QColor, QFont, QPalette
import qasync

from enhancer import __version__
from enhancer.config import Settings
from enhancer.ui.common.theme import Colors

APP_NAME = "AI Media Enhancer"


def create_splash_screen(app: QApplication) -> QSplashScreen:
    """Paint the startup splash shown while the core context is built."""
    width, height = 400, 250
    pixmap = QPixmap(width, height)
    pixmap.fill(QColor(Colors.BG_PRIMARY))

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)

    # Accent line at top
    painter.fillRect(0, 0, width, 4, QColor(Colors.ACCENT_PRIMARY))

    painter.setPen(QColor(Colors.TEXT_PRIMARY))
    painter.setFont(QFont("Segoe UI", 22, QFont.Weight.Bold))
    painter.drawText(0, 80, width, 40, Qt.AlignmentFlag.AlignCenter, APP_NAME)

    painter.setPen(QColor(Colors.TEXT_SECONDARY))
    painter.setFont(QFont("Segoe UI", 12))
    painter.drawText(0, 120, width, 30, Qt.AlignmentFlag.AlignCenter, f"v{app.applicationVersion()}")

    painter.setPen(QColor(Colors.TEXT_MUTED))
    painter.setFont(QFont("Segoe UI", 10))
    painter.drawText(0, height - 50, width, 30, Qt.AlignmentFlag.AlignCenter, "Loading...")

    painter.end()

    splash = QSplashScreen(pixmap)
    splash.setWindowFlags(
        Qt.WindowType.SplashScreen | Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint
    )
    return splash


def qt_message_handler(mode, context, message):
    """Route Qt messages into logging, dropping known harmless warnings."""
    if "QFont::setPointSize: Point size <= 0" in message:
        return

    if mode == QtMsgType.QtDebugMsg:
        logging.debug(f"Qt: {message}")
    elif mode == QtMsgType.QtInfoMsg:
        logging.info(f"Qt: {message}")
    elif mode == QtMsgType.QtWarningMsg:
        logging.warning(f"Qt: {message}")
    elif mode == QtMsgType.QtCriticalMsg:
        logging.error(f"Qt: {message}")
    elif mode == QtMsgType.QtFatalMsg:
        logging.critical(f"Qt: {message}")


def setup_logging(settings: Settings):
    """Install file and console logging under the settings log directory"""
    from enhancer.utils.logging_config import setup_logging as setup_categorized_logging

    logging_manager = setup_categorized_logging(settings.log_dir)
    qInstallMessageHandler(qt_message_handler)

    logger = logging.getLogger(__name__)
    logger.info("=" * 50)
    logger.info(f"{APP_NAME} {__version__} Starting")
    logger.info("=" * 50)
    return logging_manager


def apply_dark_palette(app: QApplication):
    palette = QPalette()
    palette.setColor(QPalette.ColorRole.Window, QColor(Colors.BG_PRIMARY))
    palette.setColor(QPalette.ColorRole.WindowText, QColor(Colors.TEXT_PRIMARY))
    palette.setColor(QPalette.ColorRole.Base, QColor(Colors.BG_TERTIARY))
    palette.setColor(QPalette.ColorRole.AlternateBase, QColor(Colors.BG_SECONDARY))
    palette.setColor(QPalette.ColorRole.ToolTipBase, QColor(Colors.BG_SECONDARY))
    palette.setColor(QPalette.ColorRole.ToolTipText, QColor(Colors.TEXT_PRIMARY))
    palette.setColor(QPalette.ColorRole.Text, QColor(Colors.TEXT_PRIMARY))
    palette.setColor(QPalette.ColorRole.Button, QColor(Colors.BG_TERTIARY))
    palette.setColor(QPalette.ColorRole.ButtonText, QColor(Colors.TEXT_PRIMARY))
    palette.setColor(QPalette.ColorRole.Link, QColor(Colors.ACCENT_LINK))
    palette.setColor(QPalette.ColorRole.Highlight, QColor(Colors.ACCENT_PRIMARY))
    palette.setColor(QPalette.ColorRole.HighlightedText, QColor(Colors.TEXT_WHITE))
    app.setPalette(palette)


async def async_main(settings: Settings, splash: QSplashScreen = None):
    """Build the core context and the main window on the running loop."""
    logger = logging.getLogger(__name__)

    try:
        from enhancer.core.context import CoreContext
        from enhancer.ui.main_window import MainWindow

        app = QApplication.instance()
        apply_dark_palette(app)

        if splash:
            splash.showMessage("Initializing...", Qt.AlignmentFlag.AlignBottom | Qt.AlignmentFlag.AlignHCenter, QColor(Colors.TEXT_MUTED))

        logger.info("Initializing core context...")
        core = CoreContext(settings)

        if splash:
            splash.showMessage("Creating UI...", Qt.AlignmentFlag.AlignBottom | Qt.AlignmentFlag.AlignHCenter, QColor(Colors.TEXT_MUTED))

        main_window = MainWindow(core)
        if splash:
            splash.finish(main_window)
        main_window.show()
        logger.info("Main window shown")

        # Keep references to prevent garbage collection
        app._main_window = main_window
        app._core_context = core

    except Exception as e:
        logger.exception(f"Fatal error during startup: {e}")
        sys.exit(1)


def main():
    """Run the desktop app on a qasync event loop"""
    settings = Settings.from_env()
    setup_logging(settings)
    logger = logging.getLogger(__name__)

    try:
        app = QApplication(sys.argv)
        app.setApplicationName(APP_NAME)
        app.setApplicationVersion(__version__)
        app.setOrganizationName("AIMediaEnhancer")

        splash = create_splash_screen(app)
        splash.show()
        app.processEvents()

        loop = qasync.QEventLoop(app)
        asyncio.set_event_loop(loop)
        logger.info("Starting application with asyncio event loop integration")

        with loop:
            loop.run_until_complete(async_main(settings, splash))
            loop.run_forever()
            core = getattr(app, "_core_context", None)
            if core is not None:
                loop.run_until_complete(core.close())

    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        logger.info("Application closed")


if __name__ == "__main__":
    main()
