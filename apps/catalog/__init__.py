"""Catalog app package.

Reference data the booking core reads: hosts' services, the bookable
resources under them (rooms, restaurant tables, generic services) and their
weekly opening hours. Constraint evaluation over that data lives in
``apps.catalog.domain`` as pure functions of a ``ResourceProfile``.
"""
