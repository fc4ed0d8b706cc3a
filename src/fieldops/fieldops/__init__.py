"""FieldOps package.

Organized by feature modules (attendance, tasks, reviews, analytics, ...)
with a thin Flask controller layer over service/repository layers.
"""
