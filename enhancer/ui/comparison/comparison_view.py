"""
Before/after comparison with a draggable split.

The enhanced image is drawn over the original and clipped to the left
``position`` percent of the widget; dragging moves the divider. Dragging
starts on press and ends on release anywhere in the application or when
the pointer leaves the view.
"""
import logging
from typing import Optional

from PyQt6.QtCore import QEvent, QPointF, QRectF, QSize, Qt, pyqtSignal
from PyQt6.QtGui import QColor, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import QApplication, QSizePolicy, QWidget
import qtawesome as qta

from enhancer.ui.common.theme import Colors, Spacing

logger = logging.getLogger(__name__)

DEFAULT_SPLIT = 50.0


class SplitController:
    """Drag state and split position, independent of any widget."""

    def __init__(self, position: float = DEFAULT_SPLIT):
        self.position = position
        self.is_dragging = False

    def press(self) -> None:
        self.is_dragging = True

    def release(self) -> None:
        self.is_dragging = False

    def leave(self) -> None:
        self.is_dragging = False

    def move(self, x: float, left: float, width: float) -> bool:
        """
        Map a pointer x coordinate onto the split.

        Returns:
            True if the position changed
        """
        if not self.is_dragging or width <= 0:
            return False
        offset = min(max(x - left, 0.0), width)
        position = offset / width * 100.0
        if position == self.position:
            return False
        self.position = position
        return True


class ComparisonView(QWidget):
    """
    Signals:
        split_changed(position): Split percentage after a drag step
    """

    split_changed = pyqtSignal(float)

    ASPECT_RATIO = 4 / 3

    def __init__(self, parent=None):
        super().__init__(parent)
        self.controller = SplitController()
        self._original: Optional[QPixmap] = None
        self._enhanced: Optional[QPixmap] = None
        self._filter_installed = False

        self.setCursor(Qt.CursorShape.SizeHorCursor)
        self.setMouseTracking(True)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setMaximumWidth(Spacing.COMPARISON_MAX_WIDTH)
        policy = QSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        policy.setHeightForWidth(True)
        self.setSizePolicy(policy)

        self._handle_icon = qta.icon("fa5s.arrows-alt-h", color=Colors.DIVIDER_ICON)

    # Content ----------------------------------------------------------

    @property
    def position(self) -> float:
        return self.controller.position

    def set_images(self, original: Optional[QPixmap], enhanced: Optional[QPixmap]) -> None:
        self._original = original
        self._enhanced = enhanced
        self.controller = SplitController()
        self.update()

    def clear(self) -> None:
        self.set_images(None, None)

    def sizeHint(self) -> QSize:
        return QSize(Spacing.COMPARISON_MAX_WIDTH, self.heightForWidth(Spacing.COMPARISON_MAX_WIDTH))

    def hasHeightForWidth(self) -> bool:
        return True

    def heightForWidth(self, width: int) -> int:
        return int(width / self.ASPECT_RATIO)

    # Input ------------------------------------------------------------

    def _drag_to(self, x: float) -> None:
        if self.controller.move(x, 0.0, float(self.width())):
            self.update()
            self.split_changed.emit(self.controller.position)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.controller.press()
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        self._drag_to(event.position().x())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        self.controller.release()
        super().mouseReleaseEvent(event)

    def leaveEvent(self, event):
        self.controller.leave()
        super().leaveEvent(event)

    def event(self, event):
        etype = event.type()
        if etype == QEvent.Type.TouchBegin:
            self.controller.press()
            event.accept()
            return True
        if etype == QEvent.Type.TouchUpdate:
            points = event.points()
            if points:
                self._drag_to(points[0].position().x())
            event.accept()
            return True
        if etype in (QEvent.Type.TouchEnd, QEvent.Type.TouchCancel):
            self.controller.release()
            event.accept()
            return True
        return super().event(event)

    # A release outside the view must still end the drag
    def showEvent(self, event):
        app = QApplication.instance()
        if app is not None and not self._filter_installed:
            app.installEventFilter(self)
            self._filter_installed = True
        super().showEvent(event)

    def hideEvent(self, event):
        self._remove_app_filter()
        self.controller.release()
        super().hideEvent(event)

    def _remove_app_filter(self):
        app = QApplication.instance()
        if app is not None and self._filter_installed:
            app.removeEventFilter(self)
        self._filter_installed = False

    def eventFilter(self, obj, event):
        if event.type() == QEvent.Type.MouseButtonRelease:
            self.controller.release()
        return super().eventFilter(obj, event)

    # Painting ---------------------------------------------------------

    def _fit_rect(self, pixmap: QPixmap) -> QRectF:
        """Centered rect keeping the pixmap's aspect ratio inside the widget."""
        bounds = QRectF(self.rect())
        if pixmap.isNull() or pixmap.width() <= 0 or pixmap.height() <= 0:
            return bounds
        scale = min(bounds.width() / pixmap.width(), bounds.height() / pixmap.height())
        w, h = pixmap.width() * scale, pixmap.height() * scale
        return QRectF(bounds.x() + (bounds.width() - w) / 2, bounds.y() + (bounds.height() - h) / 2, w, h)

    def paintEvent(self, event):
        if self._original is None or self._enhanced is None:
            return

        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)

        painter.drawPixmap(self._fit_rect(self._original), self._original, QRectF(self._original.rect()))

        split_x = self.width() * self.controller.position / 100.0
        painter.save()
        painter.setClipRect(QRectF(0, 0, split_x, self.height()))
        painter.drawPixmap(self._fit_rect(self._enhanced), self._enhanced, QRectF(self._enhanced.rect()))
        painter.restore()

        # Divider
        pen = QPen(QColor(Colors.DIVIDER))
        pen.setWidth(Spacing.DIVIDER_WIDTH)
        painter.setPen(pen)
        painter.drawLine(QPointF(split_x, 0), QPointF(split_x, self.height()))

        # Handle
        radius = Spacing.HANDLE_DIAMETER / 2
        center = QPointF(split_x, self.height() / 2)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(Colors.DIVIDER))
        painter.drawEllipse(center, radius, radius)
        icon_size = Spacing.ICON_LG
        self._handle_icon.paint(
            painter,
            int(center.x() - icon_size / 2),
            int(center.y() - icon_size / 2),
            icon_size,
            icon_size,
        )
        painter.end()
