from ux_review.pipeline.batch import BatchCoordinator, RejectedScreen, screens_for_mode, summarize
from ux_review.pipeline.layout import CommentLayoutEngine, classify_tier
from ux_review.pipeline.normalizer import normalize
from ux_review.pipeline.prompt import build_prompt

__all__ = [
    "BatchCoordinator",
    "CommentLayoutEngine",
    "RejectedScreen",
    "build_prompt",
    "classify_tier",
    "normalize",
    "screens_for_mode",
    "summarize",
]
