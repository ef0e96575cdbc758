"""Domain Layer: models, ports (interfaces) and events.

Has no dependencies on infrastructure or third-party libraries.
"""
