from .users import TimeStampedModel, User, Profile
from .blog import Post, Tag

__all__ = ["TimeStampedModel", "User", "Profile", "Post", "Tag"]
