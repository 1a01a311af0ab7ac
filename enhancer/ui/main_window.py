"""
Main window: a header and one tab per enhancement mode.
"""
import logging

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QLabel, QMainWindow, QTabWidget, QVBoxLayout, QWidget
import qtawesome as qta

from enhancer.core.context import CoreContext
from enhancer.ui.common.credential_dialog import prompt_for_api_key
from enhancer.ui.common.theme import Colors, Fonts, Spacing, Styles
from enhancer.ui.enhancers import PhotoEnhancerPanel, VideoEnhancerPanel

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, core: CoreContext, parent=None):
        super().__init__(parent)
        self.core = core
        self._closing = False
        self.setWindowTitle("AI Photo & Video Enhancer")
        self.resize(960, 820)

        core.set_credential_prompt(lambda: prompt_for_api_key(self))
        self.photo_session = core.create_photo_session(parent=self)
        self.video_session = core.create_video_session(parent=self)

        central = QWidget()
        central.setStyleSheet(f"background-color: {Colors.BG_PRIMARY};")
        layout = QVBoxLayout(central)
        layout.setContentsMargins(Spacing.XXL, Spacing.XL, Spacing.XXL, Spacing.XL)
        layout.setSpacing(Spacing.XL)

        header = QLabel("AI Photo & Video Enhancer")
        header.setAlignment(Qt.AlignmentFlag.AlignCenter)
        header.setStyleSheet(Styles.label(Colors.TEXT_PRIMARY, Fonts.SIZE_TITLE + 4, Fonts.WEIGHT_BOLD))
        layout.addWidget(header)

        self.tabs = QTabWidget()
        self.tabs.setStyleSheet(Styles.TAB_BAR)
        self.tabs.setDocumentMode(True)

        self.photo_panel = PhotoEnhancerPanel(self.photo_session)
        self.video_panel = VideoEnhancerPanel(self.video_session)
        self.tabs.addTab(self.photo_panel, qta.icon("fa5s.image", color=Colors.TEXT_PRIMARY), "Photo Enhancement")
        self.tabs.addTab(self.video_panel, qta.icon("fa5s.film", color=Colors.TEXT_PRIMARY), "Video Enhancement")
        layout.addWidget(self.tabs, 1)

        self.setCentralWidget(central)

        self.video_panel.start()
        if not core.ffmpeg_available:
            self.statusBar().showMessage("ffmpeg not found: video start-frame extraction is unavailable")

    def closeEvent(self, event):
        """Cancel in-flight work and release session results when the window closes."""
        if self._closing:
            super().closeEvent(event)
            return
        self._closing = True
        self.video_panel.shutdown()
        self.photo_session.close()
        self.video_session.close()
        logger.info("Main window closed")
        super().closeEvent(event)
