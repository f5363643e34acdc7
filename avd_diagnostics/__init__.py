"""
AVD Network Diagnostics - Remote Desktop Endpoint Health Tool

A Python-based diagnostic tool that probes remote desktop gateway,
broker and web endpoints on a schedule, grades every measurement and
keeps a timestamped log plus a daily CSV summary.
"""

__version__ = "1.0.0"
__author__ = "Network Team"
