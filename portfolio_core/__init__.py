"""Relationship integrity and activity audit core for the portfolio CMS"""

__version__ = "0.1.0"
