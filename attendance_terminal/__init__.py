"""
Attendance Terminal - Face Recognition Clock-In

Enrolls staff face signatures and scans a camera feed to record one
clock-in per person per day.
"""

__version__ = "1.0.0"
__author__ = "Attendance Terminal Team"
