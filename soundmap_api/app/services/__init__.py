"""
Service layer.

Each service encapsulates the business logic for a domain: loading
records, checking ownership, building queries and applying cascades.
API handlers only translate HTTP input into service calls.
"""
