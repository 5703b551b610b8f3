"""
Shared Kernel

Base classes, value objects and the message bus shared by all domain
contexts of the campus booking engine.
"""
