"""Storyframe: creative brief to storyboard, keyframes and video prompts."""

__version__ = "0.1.0"
