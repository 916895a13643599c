"""
Skill battle resolution engine - Main Package
"""

__version__ = "0.1.0"
