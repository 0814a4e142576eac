"""Core database models"""
from .user import User
from .identity import Identity
from .raw_tweet import RawTweet
from .processed_post import ProcessedPost
from .channel_snapshot import ChannelSnapshot

__all__ = ["User", "Identity", "RawTweet", "ProcessedPost", "ChannelSnapshot"]
