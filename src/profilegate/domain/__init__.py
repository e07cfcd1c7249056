"""Domain layer: enums, state machines, errors, and pure redaction rules.

Nothing here touches the database; infrastructure and services build on it.
"""
