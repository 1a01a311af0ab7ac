from enhancer.ui.comparison.comparison_view import ComparisonView, SplitController

__all__ = ['ComparisonView', 'SplitController']
