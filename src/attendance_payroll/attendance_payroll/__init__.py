"""Attendance & payroll engine package.

Organized by feature modules (attendance, payroll, users, ...) with a thin
Flask controller layer over service/repository layers.
"""
