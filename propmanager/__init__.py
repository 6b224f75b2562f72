"""
Property Manager API: multi-tenant property management backend.
"""
