"""Payments app package.

Talks to the external payment gateway on behalf of bookings: starting a
charge, refunding a cancelled booking and receiving the gateway's signed
status webhook. Booking state changes go through
``apps.bookings.application.payment_sync``.
"""
