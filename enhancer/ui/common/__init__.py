from enhancer.ui.common.theme import Colors, Fonts, Spacing, Styles

__all__ = ['Colors', 'Fonts', 'Spacing', 'Styles']
