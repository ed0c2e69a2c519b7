"""APSConnect package.

This package is organized by feature modules (users, approvals, attendance,
library, results, fees, notifications, assignments) with a thin Flask
controller layer and service/repository layers underneath.
"""
