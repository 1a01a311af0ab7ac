"""Photo enhancement page: upload, preview, enhance, compare and save."""
import logging
from pathlib import Path

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QPixmap
from PyQt6.QtWidgets import (
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)
import qtawesome as qta

from enhancer.core.session import Complete, Empty, Failed, Loaded, PhotoSession, Processing
from enhancer.media import IMAGE_EXTS
from enhancer.ui.common.theme import Colors, Fonts, Spacing, Styles
from enhancer.ui.comparison import ComparisonView
from enhancer.ui.widgets import SpinnerWidget

logger = logging.getLogger(__name__)

IMAGE_FILTER = f"Images ({' '.join('*' + ext for ext in sorted(IMAGE_EXTS))})"


class PhotoEnhancerPanel(QFrame):
    """Renders a PhotoSession; every page is a function of the session state."""

    PAGE_UPLOAD = 0
    PAGE_READY = 1
    PAGE_RESULT = 2

    def __init__(self, session: PhotoSession, parent=None):
        super().__init__(parent)
        self.session = session
        self.setObjectName("enhancerPanel")
        self.setStyleSheet(Styles.PANEL)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(Spacing.XXL, Spacing.XXL, Spacing.XXL, Spacing.XXL)

        self.pages = QStackedWidget()
        self.pages.addWidget(self._build_upload_page())
        self.pages.addWidget(self._build_ready_page())
        self.pages.addWidget(self._build_result_page())
        layout.addWidget(self.pages)

        self.error_label = QLabel()
        self.error_label.setWordWrap(True)
        self.error_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.error_label.setStyleSheet(Styles.error_label())
        self.error_label.setVisible(False)
        layout.addWidget(self.error_label)

        session.state_changed.connect(self._render)
        self._render(session.state)

    # Pages --------------------------------------------------------------

    def _build_upload_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.setSpacing(Spacing.SM)

        title = QLabel("Enhance Your Photos Instantly")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet(Styles.label(size=Fonts.SIZE_XL, weight=Fonts.WEIGHT_SEMIBOLD))
        layout.addWidget(title)

        subtitle = QLabel("Upload an image to see the magic of AI enhancement.")
        subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)
        subtitle.setStyleSheet(Styles.label(Colors.TEXT_SECONDARY))
        layout.addWidget(subtitle)
        layout.addSpacing(Spacing.XL)

        self.select_button = QPushButton("  Select Image")
        self.select_button.setIcon(qta.icon("fa5s.upload", color=Colors.TEXT_SECONDARY))
        self.select_button.setStyleSheet(Styles.button_upload())
        self.select_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.select_button.clicked.connect(self._choose_file)
        layout.addWidget(self.select_button, 0, Qt.AlignmentFlag.AlignHCenter)
        return page

    def _build_ready_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.setSpacing(Spacing.LG)

        title = QLabel("Ready to Enhance?")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet(Styles.label(size=Fonts.SIZE_XL, weight=Fonts.WEIGHT_SEMIBOLD))
        layout.addWidget(title)

        self.preview_label = QLabel()
        self.preview_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.preview_label.setMaximumWidth(Spacing.PREVIEW_MAX_WIDTH)
        layout.addWidget(self.preview_label, 0, Qt.AlignmentFlag.AlignHCenter)

        actions = QHBoxLayout()
        actions.setSpacing(Spacing.LG)
        actions.addStretch()

        self.change_button = QPushButton("Change Image")
        self.change_button.setStyleSheet(Styles.button_link())
        self.change_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.change_button.clicked.connect(self._choose_file)
        actions.addWidget(self.change_button)

        self.enhance_spinner = SpinnerWidget(size=Spacing.ICON_MD, color=Colors.TEXT_WHITE)
        actions.addWidget(self.enhance_spinner)

        self.enhance_button = QPushButton("Enhance Now")
        self.enhance_button.setStyleSheet(Styles.button_primary())
        self.enhance_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.enhance_button.clicked.connect(self._enhance)
        actions.addWidget(self.enhance_button)

        actions.addStretch()
        layout.addLayout(actions)
        return page

    def _build_result_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.setSpacing(Spacing.SM)

        title = QLabel("Enhancement Complete")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet(Styles.label(size=Fonts.SIZE_TITLE, weight=Fonts.WEIGHT_BOLD))
        layout.addWidget(title)

        subtitle = QLabel("Slide to compare the original and enhanced images.")
        subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)
        subtitle.setStyleSheet(Styles.label(Colors.TEXT_SECONDARY))
        layout.addWidget(subtitle)
        layout.addSpacing(Spacing.LG)

        self.comparison = ComparisonView()
        layout.addWidget(self.comparison, 0, Qt.AlignmentFlag.AlignHCenter)
        layout.addSpacing(Spacing.LG)

        actions = QHBoxLayout()
        actions.setSpacing(Spacing.LG)
        actions.addStretch()

        self.another_button = QPushButton("Upload Another")
        self.another_button.setStyleSheet(Styles.button_link())
        self.another_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.another_button.clicked.connect(self._choose_file)
        actions.addWidget(self.another_button)

        self.save_button = QPushButton("Download")
        self.save_button.setStyleSheet(Styles.button_success())
        self.save_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.save_button.clicked.connect(self._save)
        actions.addWidget(self.save_button)

        actions.addStretch()
        layout.addLayout(actions)
        return page

    # Rendering ----------------------------------------------------------

    def _render(self, state) -> None:
        processing = isinstance(state, Processing)
        self.enhance_button.setEnabled(not processing)
        self.change_button.setEnabled(not processing)
        self.enhance_button.setText("Enhancing..." if processing else "Enhance Now")
        if processing:
            self.enhance_spinner.start()
        else:
            self.enhance_spinner.stop()

        error = state.error if isinstance(state, Failed) else None
        self.error_label.setText(f"Error: {error}" if error else "")
        self.error_label.setVisible(bool(error))

        if isinstance(state, Empty) or getattr(state, "original", None) is None:
            self.comparison.clear()
            self.pages.setCurrentIndex(self.PAGE_UPLOAD)
            return

        if isinstance(state, Complete):
            enhanced = QPixmap()
            if not enhanced.loadFromData(state.result.to_bytes()):
                logger.warning("Enhanced image could not be decoded for display")
            self.comparison.set_images(QPixmap(str(state.original.path)), enhanced)
            self.pages.setCurrentIndex(self.PAGE_RESULT)
            return

        if isinstance(state, (Loaded, Processing, Failed)):
            self._show_preview(state.original.path)
            self.comparison.clear()
            self.pages.setCurrentIndex(self.PAGE_READY)

    def _show_preview(self, path: Path) -> None:
        pixmap = QPixmap(str(path))
        if pixmap.isNull():
            self.preview_label.setText(path.name)
            return
        self.preview_label.setPixmap(
            pixmap.scaledToWidth(
                min(pixmap.width(), Spacing.PREVIEW_MAX_WIDTH),
                Qt.TransformationMode.SmoothTransformation,
            )
        )

    # Actions ------------------------------------------------------------

    def _choose_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Select Image", "", IMAGE_FILTER)
        if path:
            self.session.select_file(path)

    def _enhance(self) -> None:
        self.session.start_enhance()

    def _save(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Save Enhanced Image", "enhanced-image.png", IMAGE_FILTER)
        if not path:
            return
        try:
            self.session.save_result(path)
        except (OSError, RuntimeError) as e:
            logger.error(f"Failed to save enhanced image: {e}")
            QMessageBox.warning(self, "Save Failed", str(e))
