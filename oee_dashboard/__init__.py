"""
OEE Dashboard - Backend API

OEE metrics for factory devices computed from machine status, production
and quality records.
"""
