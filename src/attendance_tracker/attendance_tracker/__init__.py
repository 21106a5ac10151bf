"""Attendance Tracker package.

Feature modules (users, workhours, uploads, attendance) with a thin Flask
JSON controller layer on top of service/repository layers.
"""
