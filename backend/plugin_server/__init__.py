"""
Plugin Server

HTTP service storing plugin JAR archives and exposing their contents as a
read-only virtual filesystem.
"""

__version__ = "1.0.0"
