"""TikTok video extraction and import service"""

__version__ = "1.0.0"
