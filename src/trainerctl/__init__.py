"""trainerctl — session, package and payment bookkeeping for personal trainers."""

__version__ = "0.1.0"
