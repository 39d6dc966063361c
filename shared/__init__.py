"""
Shared Kernel

Base classes and utilities shared by the catalog, booking and payment
contexts: value objects, domain events, the message bus and the unit of work.
"""
