"""Video generation page: credential gate, start frame, prompt, progress and playback."""
import logging

from PyQt6.QtCore import Qt, QUrl
from PyQt6.QtGui import QPixmap
from PyQt6.QtMultimedia import QAudioOutput, QMediaPlayer
from PyQt6.QtMultimediaWidgets import QVideoWidget
from PyQt6.QtWidgets import (
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)
import qtawesome as qta

from enhancer.core.dto import OperationStatus
from enhancer.core.session import Complete, Empty, Failed, Loaded, Processing, VideoSession
from enhancer.media import VIDEO_EXTS
from enhancer.ui.common.credential_dialog import BILLING_URL
from enhancer.ui.common.theme import Colors, Fonts, Spacing, Styles
from enhancer.ui.widgets import ProgressPanel

logger = logging.getLogger(__name__)

VIDEO_FILTER = f"Videos ({' '.join('*' + ext for ext in sorted(VIDEO_EXTS))})"


class VideoEnhancerPanel(QFrame):
    """Renders a VideoSession."""

    PAGE_CREDENTIAL = 0
    PAGE_UPLOAD = 1
    PAGE_EDIT = 2
    PAGE_PROCESSING = 3
    PAGE_RESULT = 4

    def __init__(self, session: VideoSession, parent=None):
        super().__init__(parent)
        self.session = session
        self.setObjectName("enhancerPanel")
        self.setStyleSheet(Styles.PANEL)
        self._prompt_syncing = False

        layout = QVBoxLayout(self)
        layout.setContentsMargins(Spacing.XXL, Spacing.XXL, Spacing.XXL, Spacing.XXL)

        self.pages = QStackedWidget()
        self.pages.addWidget(self._build_credential_page())
        self.pages.addWidget(self._build_upload_page())
        self.pages.addWidget(self._build_edit_page())
        self.progress = ProgressPanel()
        self.pages.addWidget(self.progress)
        self.pages.addWidget(self._build_result_page())
        layout.addWidget(self.pages)

        self.error_label = QLabel()
        self.error_label.setWordWrap(True)
        self.error_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.error_label.setStyleSheet(Styles.error_label())
        self.error_label.setVisible(False)
        layout.addWidget(self.error_label)

        session.state_changed.connect(self._render)
        session.status_changed.connect(self._on_status)
        session.credential_changed.connect(self._on_credential_changed)
        self._render(session.state)

    def start(self) -> None:
        """Read the credential capability; needs the running event loop."""
        self.session.start_credential_check()

    def _on_credential_changed(self, selected: bool) -> None:
        self._render(self.session.state)
        if not selected:
            # Rejected by the service; ask the capability again
            self.session.start_credential_check()

    # Pages --------------------------------------------------------------

    def _build_credential_page(self) -> QWidget:
        page = QWidget()
        outer = QVBoxLayout(page)
        outer.setAlignment(Qt.AlignmentFlag.AlignTop)

        banner = QFrame()
        banner.setObjectName("credentialBanner")
        banner.setStyleSheet(Styles.CREDENTIAL_BANNER)
        layout = QVBoxLayout(banner)
        layout.setContentsMargins(Spacing.LG, Spacing.MD, Spacing.LG, Spacing.MD)

        heading = QLabel(
            "<b>API Key Required!</b> Video generation requires an API key. Please select one to proceed."
        )
        heading.setWordWrap(True)
        layout.addWidget(heading)

        self.select_key_button = QPushButton("Select API Key")
        self.select_key_button.setStyleSheet(Styles.button_warning())
        self.select_key_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.select_key_button.clicked.connect(self.session.start_credential_selection)
        layout.addWidget(self.select_key_button, 0, Qt.AlignmentFlag.AlignLeft)

        billing = QLabel(
            f'For information on billing, see the <a href="{BILLING_URL}" '
            f'style="color: {Colors.WARNING_TEXT};">billing documentation</a>.'
        )
        billing.setOpenExternalLinks(True)
        billing.setStyleSheet(f"font-size: {Fonts.SIZE_XS}px;")
        layout.addWidget(billing)

        outer.addWidget(banner)
        return page

    def _build_upload_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.setSpacing(Spacing.SM)

        title = QLabel("Re-imagine Your Videos")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet(Styles.label(size=Fonts.SIZE_XL, weight=Fonts.WEIGHT_SEMIBOLD))
        layout.addWidget(title)

        subtitle = QLabel("Upload a video, describe a new style, and let AI generate a new clip.")
        subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)
        subtitle.setStyleSheet(Styles.label(Colors.TEXT_SECONDARY))
        layout.addWidget(subtitle)
        layout.addSpacing(Spacing.XL)

        select_button = QPushButton("  Select Video")
        select_button.setIcon(qta.icon("fa5s.upload", color=Colors.TEXT_SECONDARY))
        select_button.setStyleSheet(Styles.button_upload())
        select_button.setCursor(Qt.CursorShape.PointingHandCursor)
        select_button.clicked.connect(self._choose_file)
        layout.addWidget(select_button, 0, Qt.AlignmentFlag.AlignHCenter)
        return page

    def _build_edit_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setSpacing(Spacing.XL)

        row = QHBoxLayout()
        row.setSpacing(Spacing.XL)

        frame_column = QVBoxLayout()
        frame_title = QLabel("Video Start Frame")
        frame_title.setStyleSheet(Styles.label(Colors.TEXT_SECONDARY, Fonts.SIZE_LG, Fonts.WEIGHT_SEMIBOLD))
        frame_column.addWidget(frame_title)
        self.frame_label = QLabel()
        self.frame_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.frame_label.setFixedWidth(Spacing.FRAME_PREVIEW_WIDTH)
        self.frame_label.setMinimumHeight(Spacing.FRAME_PREVIEW_WIDTH * 9 // 16)
        self.frame_label.setStyleSheet(
            f"background-color: {Colors.BG_TERTIARY}; color: {Colors.TEXT_SECONDARY}; "
            f"border-radius: {Spacing.RADIUS_LG}px;"
        )
        frame_column.addWidget(self.frame_label)

        change_button = QPushButton("Change Video")
        change_button.setStyleSheet(Styles.button_link())
        change_button.setCursor(Qt.CursorShape.PointingHandCursor)
        change_button.clicked.connect(self._choose_file)
        frame_column.addWidget(change_button, 0, Qt.AlignmentFlag.AlignLeft)
        frame_column.addStretch()
        row.addLayout(frame_column)

        prompt_column = QVBoxLayout()
        prompt_title = QLabel("Describe the enhancement")
        prompt_title.setStyleSheet(Styles.label(Colors.TEXT_SECONDARY, Fonts.SIZE_LG, Fonts.WEIGHT_SEMIBOLD))
        prompt_column.addWidget(prompt_title)

        self.prompt_edit = QPlainTextEdit()
        self.prompt_edit.setPlaceholderText("e.g., A cinematic shot with dramatic lighting")
        self.prompt_edit.setFixedHeight(Spacing.PROMPT_HEIGHT)
        self.prompt_edit.setStyleSheet(Styles.text_area())
        self.prompt_edit.textChanged.connect(self._on_prompt_edited)
        prompt_column.addWidget(self.prompt_edit)

        examples_label = QLabel("Example prompts:")
        examples_label.setStyleSheet(Styles.label(Colors.TEXT_SECONDARY, Fonts.SIZE_XS))
        prompt_column.addWidget(examples_label)

        chips = QHBoxLayout()
        chips.setSpacing(Spacing.SM)
        for text in VideoSession.EXAMPLE_PROMPTS:
            chip = QPushButton(text)
            chip.setStyleSheet(Styles.chip())
            chip.setCursor(Qt.CursorShape.PointingHandCursor)
            chip.clicked.connect(lambda _checked=False, t=text: self.prompt_edit.setPlainText(t))
            chips.addWidget(chip)
        chips.addStretch()
        prompt_column.addLayout(chips)
        prompt_column.addStretch()
        row.addLayout(prompt_column, 1)

        layout.addLayout(row)

        self.generate_button = QPushButton("Generate Video")
        self.generate_button.setStyleSheet(Styles.button_primary())
        self.generate_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.generate_button.clicked.connect(self.session.start_generate)
        layout.addWidget(self.generate_button, 0, Qt.AlignmentFlag.AlignHCenter)
        return page

    def _build_result_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setSpacing(Spacing.LG)

        title = QLabel("Your New Video is Ready!")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet(Styles.label(size=Fonts.SIZE_TITLE, weight=Fonts.WEIGHT_BOLD))
        layout.addWidget(title)

        self.video_widget = QVideoWidget()
        self.video_widget.setMinimumHeight(360)
        self.video_widget.setMaximumWidth(Spacing.COMPARISON_MAX_WIDTH)
        layout.addWidget(self.video_widget, 1, Qt.AlignmentFlag.AlignHCenter)

        self.audio_output = QAudioOutput(self)
        self.player = QMediaPlayer(self)
        self.player.setAudioOutput(self.audio_output)
        self.player.setVideoOutput(self.video_widget)
        self.player.setLoops(QMediaPlayer.Loops.Infinite)
        self.player.errorOccurred.connect(
            lambda _error, message: logger.warning(f"Playback error: {message}")
        )

        actions = QHBoxLayout()
        actions.setSpacing(Spacing.LG)
        actions.addStretch()

        start_over = QPushButton("Start Over")
        start_over.setStyleSheet(Styles.button_link())
        start_over.setCursor(Qt.CursorShape.PointingHandCursor)
        start_over.clicked.connect(self._start_over)
        actions.addWidget(start_over)

        save_button = QPushButton("Download Video")
        save_button.setStyleSheet(Styles.button_success())
        save_button.setCursor(Qt.CursorShape.PointingHandCursor)
        save_button.clicked.connect(self._save)
        actions.addWidget(save_button)

        actions.addStretch()
        layout.addLayout(actions)
        return page

    # Rendering ----------------------------------------------------------

    def _render(self, state) -> None:
        error = state.error if isinstance(state, Failed) else None
        self.error_label.setText(f"Error: {error}" if error else "")
        self.error_label.setVisible(bool(error))

        if not isinstance(state, Complete):
            self._stop_playback()
        if not isinstance(state, Processing):
            self.progress.stop()

        if not self.session.credential_selected:
            self.pages.setCurrentIndex(self.PAGE_CREDENTIAL)
            return

        if isinstance(state, Processing):
            self.progress.start(state.status)
            self.pages.setCurrentIndex(self.PAGE_PROCESSING)
        elif isinstance(state, Complete):
            self._play(state)
            self.pages.setCurrentIndex(self.PAGE_RESULT)
        elif isinstance(state, (Loaded, Failed)) and state.original is not None:
            self._show_frame(state)
            self._sync_prompt()
            self.pages.setCurrentIndex(self.PAGE_EDIT)
        else:
            self._sync_prompt()
            self.pages.setCurrentIndex(self.PAGE_UPLOAD)

        self.generate_button.setEnabled(self.session.can_generate)

    def _show_frame(self, state) -> None:
        if state.preview is None:
            self.frame_label.setPixmap(QPixmap())
            self.frame_label.setText("Extracting frame..." if isinstance(state, Loaded) else "No frame available")
            return
        pixmap = QPixmap()
        if pixmap.loadFromData(state.preview.frame_bytes()):
            self.frame_label.setPixmap(
                pixmap.scaledToWidth(Spacing.FRAME_PREVIEW_WIDTH, Qt.TransformationMode.SmoothTransformation)
            )
        else:
            self.frame_label.setText("Preview unavailable")

    def _sync_prompt(self) -> None:
        if self.prompt_edit.toPlainText() == self.session.prompt:
            return
        self._prompt_syncing = True
        try:
            self.prompt_edit.setPlainText(self.session.prompt)
        finally:
            self._prompt_syncing = False

    def _on_prompt_edited(self) -> None:
        if self._prompt_syncing:
            return
        self.session.prompt = self.prompt_edit.toPlainText()
        self.generate_button.setEnabled(self.session.can_generate)

    def _on_status(self, status: OperationStatus) -> None:
        self.progress.update_status(status)

    def _play(self, state: Complete) -> None:
        source = QUrl.fromLocalFile(str(state.result.path))
        if self.player.source() != source:
            self.player.setSource(source)
        self.player.play()

    def _stop_playback(self) -> None:
        if not self.player.source().isEmpty():
            self.player.stop()
            self.player.setSource(QUrl())

    # Actions ------------------------------------------------------------

    def _choose_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Select Video", "", VIDEO_FILTER)
        if path:
            self.session.select_file(path)

    def _start_over(self) -> None:
        self._stop_playback()
        self.session.reset()

    def _save(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Save Generated Video", "enhanced-video.mp4", VIDEO_FILTER)
        if not path:
            return
        try:
            self.session.save_result(path)
        except (OSError, RuntimeError) as e:
            logger.error(f"Failed to save generated video: {e}")
            QMessageBox.warning(self, "Save Failed", str(e))

    def shutdown(self) -> None:
        self._stop_playback()
