"""
API routers for the Property Manager API.
"""

from . import auth, images, orgs, properties, units

__all__ = ["auth", "images", "orgs", "properties", "units"]
