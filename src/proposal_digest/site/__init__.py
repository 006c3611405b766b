from .generator import SiteGenerator
from .rss import build_feed, render_feed

__all__ = ["SiteGenerator", "build_feed", "render_feed"]
