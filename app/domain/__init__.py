"""
Domain layer containing core business logic and domain services.

Submodules:
- classroom: The shared classroom session (membership, chat, drawing permissions,
  video peer discovery) and the dispatch of inbound events.
"""
