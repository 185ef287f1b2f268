"""
katalink - KataGo analysis engine bridge

Keeps a single websocket connection to a KataGo proxy and reconciles the
analysis an application wants with the analysis the engine is running.
"""

__version__ = "0.3.0"
__author__ = "katalink developers"
