"""
Processing indicator for long-running remote calls.

Shows a spinning icon, the current status message and, for operations that
report it, a progress bar fed from OperationStatus ticks.
"""
import logging

from PyQt6.QtCore import QSize, Qt
from PyQt6.QtWidgets import QLabel, QProgressBar, QVBoxLayout, QWidget
import qtawesome as qta

from enhancer.core.dto import OperationStatus
from enhancer.ui.common.theme import Colors, Fonts, Spacing, Styles

logger = logging.getLogger(__name__)


class SpinnerWidget(qta.IconWidget):
    def __init__(self, parent=None, *, size: int = 40, color: str = Colors.SPINNER):
        super().__init__()
        if parent is not None:
            self.setParent(parent)
        self._spin = qta.Spin(self, autostart=False)
        self.setIcon(qta.icon("fa5s.spinner", color=color, animation=self._spin))
        self.setIconSize(QSize(size, size))
        self.setFixedSize(size, size)
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.setVisible(False)

    def start(self):
        self.setVisible(True)
        self._spin.start()

    def stop(self):
        self._spin.stop()
        self.setVisible(False)


class ProgressPanel(QWidget):
    """Spinner + message + optional determinate bar."""

    def __init__(self, parent=None, *, show_bar: bool = True):
        super().__init__(parent)
        self._show_bar = show_bar

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, Spacing.XL, 0, Spacing.XL)
        layout.setSpacing(Spacing.LG)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self.spinner = SpinnerWidget(self)
        layout.addWidget(self.spinner, 0, Qt.AlignmentFlag.AlignHCenter)

        self.message_label = QLabel()
        self.message_label.setWordWrap(True)
        self.message_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.message_label.setStyleSheet(
            Styles.label(Colors.ACCENT_LINK_HOVER, Fonts.SIZE_TITLE, Fonts.WEIGHT_BOLD)
        )
        layout.addWidget(self.message_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setFixedHeight(Spacing.PROGRESS_BAR_HEIGHT)
        self.progress_bar.setMaximumWidth(512)
        self.progress_bar.setStyleSheet(Styles.PROGRESS_BAR)
        self.progress_bar.setVisible(show_bar)
        layout.addWidget(self.progress_bar, 0, Qt.AlignmentFlag.AlignHCenter)

    @property
    def progress(self) -> int:
        return self.progress_bar.value()

    @property
    def message(self) -> str:
        return self.message_label.text()

    def start(self, status: OperationStatus) -> None:
        self.spinner.start()
        self.update_status(status)

    def update_status(self, status: OperationStatus) -> None:
        self.message_label.setText(status.message)
        self.progress_bar.setValue(status.progress)

    def stop(self) -> None:
        self.spinner.stop()
