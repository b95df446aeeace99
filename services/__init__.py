"""
Service layer: the authentication/session core and the caller identity
handed to downstream handlers.
"""
