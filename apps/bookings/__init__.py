"""Bookings app package.

Holds the interval admission service: it decides whether a reservation of a
resource may be created, rescheduled or cancelled without overlapping another
active booking, and persists the outcome atomically. Admission runs inside a
resource-scoped critical section (process lock, row lock, unique constraint)
so simultaneous requests for the same time can never both succeed.
"""
