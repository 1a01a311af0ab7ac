"""
Centralized theme configuration for the application.

Single source of truth for colors, fonts, spacing and the stylesheet
snippets used by the enhancer panels.

Usage:
    from enhancer.ui.common.theme import Colors, Fonts, Spacing, Styles

    label.setStyleSheet(f"color: {Colors.TEXT_PRIMARY};")
    icon = qta.icon('fa5s.magic', color=Colors.ACCENT_PRIMARY)
"""
from typing import Optional


class Colors:
    """
    Color palette for the application.

      Backgrounds: #111827 (primary), #1f2937 (secondary), #374151 (tertiary)
      Text:        #f3f4f6 (primary), #9ca3af (secondary), #6b7280 (muted)
      Accent:      #4f46e5 (primary action), #818cf8 (links)
    """

    # Primary accent - indigo (active tabs, main actions, progress)
    ACCENT_PRIMARY = "#4f46e5"
    ACCENT_PRIMARY_HOVER = "#4338ca"
    ACCENT_PRIMARY_DISABLED = "#312e81"
    ACCENT_GRADIENT_END = "#a855f7"

    # Links / secondary actions
    ACCENT_LINK = "#818cf8"
    ACCENT_LINK_HOVER = "#a5b4fc"

    # Semantic accents
    ACCENT_SUCCESS = "#16a34a"
    ACCENT_SUCCESS_HOVER = "#15803d"
    ACCENT_ERROR = "#f87171"
    ACCENT_WARNING = "#ca8a04"
    WARNING_BG = "#3b2f0b"
    WARNING_BORDER = "#a16207"
    WARNING_TEXT = "#fef08a"

    # Text colors
    TEXT_PRIMARY = "#f3f4f6"
    TEXT_SECONDARY = "#9ca3af"
    TEXT_MUTED = "#6b7280"
    TEXT_DISABLED = "#6b7280"
    TEXT_WHITE = "#ffffff"

    # Background colors (darkest to lightest)
    BG_PRIMARY = "#111827"
    BG_SECONDARY = "#1f2937"
    BG_TERTIARY = "#374151"
    BG_HOVER = "#4b5563"
    BG_INPUT = "#374151"

    # Border colors
    BORDER_DEFAULT = "#4b5563"
    BORDER_DASHED = "#6b7280"

    # Comparison divider
    DIVIDER = "#ffffff"
    DIVIDER_ICON = "#4b5563"

    SPINNER = ACCENT_LINK


class Fonts:
    """Font sizes and weights."""

    FAMILY = '"Inter", "Segoe UI", sans-serif'

    SIZE_XS = 11
    SIZE_SM = 12
    SIZE_MD = 14
    SIZE_LG = 16
    SIZE_XL = 20
    SIZE_TITLE = 24

    WEIGHT_NORMAL = 400
    WEIGHT_SEMIBOLD = 600
    WEIGHT_BOLD = 700


class Spacing:
    """Spacing and sizing constants."""

    XS = 4
    SM = 8
    MD = 12
    LG = 16
    XL = 24
    XXL = 32

    RADIUS_SM = 4
    RADIUS_MD = 6
    RADIUS_LG = 8
    RADIUS_XL = 12

    ICON_MD = 20
    ICON_LG = 24

    PROGRESS_BAR_HEIGHT = 16
    PREVIEW_MAX_WIDTH = 448
    FRAME_PREVIEW_WIDTH = 256
    COMPARISON_MAX_WIDTH = 672
    HANDLE_DIAMETER = 40
    DIVIDER_WIDTH = 4
    PROMPT_HEIGHT = 84


class Styles:
    """Pre-built stylesheet snippets for programmatic styling."""

    PANEL = f"""
        QFrame#enhancerPanel {{
            background-color: {Colors.BG_SECONDARY};
            border-radius: {Spacing.RADIUS_XL}px;
        }}
    """

    TAB_BAR = f"""
        QTabWidget::pane {{ border: none; }}
        QTabBar::tab {{
            background-color: {Colors.BG_TERTIARY};
            color: {Colors.TEXT_SECONDARY};
            padding: 12px 24px;
            margin: 4px;
            border-radius: {Spacing.RADIUS_LG}px;
            font-weight: {Fonts.WEIGHT_BOLD};
        }}
        QTabBar::tab:hover {{ background-color: {Colors.BG_HOVER}; }}
        QTabBar::tab:selected {{
            background-color: {Colors.ACCENT_PRIMARY};
            color: {Colors.TEXT_WHITE};
        }}
    """

    PROGRESS_BAR = f"""
        QProgressBar {{
            background-color: {Colors.BG_TERTIARY};
            border-radius: {Spacing.PROGRESS_BAR_HEIGHT // 2}px;
            border: none;
        }}
        QProgressBar::chunk {{
            background-color: qlineargradient(x1:0, y1:0, x2:1, y2:0,
                stop:0 {Colors.ACCENT_PRIMARY}, stop:1 {Colors.ACCENT_GRADIENT_END});
            border-radius: {Spacing.PROGRESS_BAR_HEIGHT // 2}px;
        }}
    """

    CREDENTIAL_BANNER = f"""
        QFrame#credentialBanner {{
            background-color: {Colors.WARNING_BG};
            border: 1px solid {Colors.WARNING_BORDER};
            border-radius: {Spacing.RADIUS_LG}px;
        }}
        QLabel {{ color: {Colors.WARNING_TEXT}; }}
    """

    @staticmethod
    def label(
        color: str = Colors.TEXT_PRIMARY,
        size: int = Fonts.SIZE_MD,
        weight: int = Fonts.WEIGHT_NORMAL,
        padding: Optional[int] = None,
    ) -> str:
        """Label stylesheet; a non-positive size falls back to SIZE_MD (Qt warns on <= 0)."""
        size = size if size and size > 0 else Fonts.SIZE_MD
        style = f"color: {color}; font-size: {size}px; font-weight: {weight};"
        if padding is not None:
            style += f" padding: {padding}px;"
        return f"QLabel {{ {style} }}"

    @staticmethod
    def button_primary() -> str:
        return f"""
            QPushButton {{
                background-color: {Colors.ACCENT_PRIMARY};
                border: none;
                border-radius: {Spacing.RADIUS_LG}px;
                color: {Colors.TEXT_WHITE};
                font-weight: {Fonts.WEIGHT_BOLD};
                padding: 12px 32px;
            }}
            QPushButton:hover {{ background-color: {Colors.ACCENT_PRIMARY_HOVER}; }}
            QPushButton:disabled {{
                background-color: {Colors.ACCENT_PRIMARY_DISABLED};
                color: {Colors.TEXT_SECONDARY};
            }}
        """

    @staticmethod
    def button_success() -> str:
        return f"""
            QPushButton {{
                background-color: {Colors.ACCENT_SUCCESS};
                border: none;
                border-radius: {Spacing.RADIUS_LG}px;
                color: {Colors.TEXT_WHITE};
                font-weight: {Fonts.WEIGHT_BOLD};
                padding: 8px 24px;
            }}
            QPushButton:hover {{ background-color: {Colors.ACCENT_SUCCESS_HOVER}; }}
        """

    @staticmethod
    def button_warning() -> str:
        return f"""
            QPushButton {{
                background-color: {Colors.ACCENT_WARNING};
                border: none;
                border-radius: {Spacing.RADIUS_SM}px;
                color: {Colors.TEXT_WHITE};
                font-weight: {Fonts.WEIGHT_BOLD};
                padding: 8px 16px;
            }}
        """

    @staticmethod
    def button_link() -> str:
        """Text-only action (Change Image, Start Over)."""
        return f"""
            QPushButton {{
                background: transparent;
                border: none;
                color: {Colors.ACCENT_LINK};
                font-size: {Fonts.SIZE_SM + 1}px;
            }}
            QPushButton:hover {{ color: {Colors.ACCENT_LINK_HOVER}; }}
        """

    @staticmethod
    def button_upload() -> str:
        return f"""
            QPushButton {{
                background: transparent;
                border: 1px dashed {Colors.BORDER_DASHED};
                border-radius: {Spacing.RADIUS_LG}px;
                color: {Colors.TEXT_SECONDARY};
                padding: 12px 24px;
            }}
            QPushButton:hover {{
                color: {Colors.TEXT_WHITE};
                border-color: {Colors.ACCENT_PRIMARY};
            }}
        """

    @staticmethod
    def chip() -> str:
        """Example-prompt chip."""
        return f"""
            QPushButton {{
                background-color: {Colors.BG_HOVER};
                border: none;
                border-radius: {Spacing.RADIUS_MD}px;
                color: {Colors.TEXT_PRIMARY};
                font-size: {Fonts.SIZE_XS}px;
                padding: 4px 8px;
            }}
            QPushButton:hover {{ background-color: {Colors.BORDER_DASHED}; }}
        """

    @staticmethod
    def text_area() -> str:
        return f"""
            QPlainTextEdit {{
                background-color: {Colors.BG_INPUT};
                border: 1px solid {Colors.BORDER_DEFAULT};
                border-radius: {Spacing.RADIUS_LG}px;
                color: {Colors.TEXT_PRIMARY};
                padding: {Spacing.SM}px;
            }}
            QPlainTextEdit:focus {{ border-color: {Colors.ACCENT_PRIMARY}; }}
        """

    @staticmethod
    def error_label() -> str:
        return f"color: {Colors.ACCENT_ERROR}; margin-top: {Spacing.LG}px;"

