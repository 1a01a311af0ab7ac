from enhancer.ui.widgets.progress_panel import ProgressPanel, SpinnerWidget

__all__ = ['ProgressPanel', 'SpinnerWidget']
