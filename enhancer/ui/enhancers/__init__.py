from enhancer.ui.enhancers.photo_panel import PhotoEnhancerPanel
from enhancer.ui.enhancers.video_panel import VideoEnhancerPanel

__all__ = ['PhotoEnhancerPanel', 'VideoEnhancerPanel']
