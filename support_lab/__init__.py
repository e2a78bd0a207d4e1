"""
Support Lab - support ticket API with health monitoring and debugging scenarios
"""
__version__ = "1.0.0"
