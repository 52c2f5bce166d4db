from upreview_core.upsource.client import UpsourceClient, UpsourceError
from upreview_core.upsource.reviews import ReviewTarget, add_review_label, create_discussion, list_reviews

__all__ = [
    "ReviewTarget",
    "UpsourceClient",
    "UpsourceError",
    "add_review_label",
    "create_discussion",
    "list_reviews",
]
