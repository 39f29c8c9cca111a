"""Law firms module - firms, memberships and effective permissions."""

from mirath.modules.firms.routes import router


# Module metadata
__module_info__ = {
    "name": "firms",
    "version": "1.0.0",
    "description": "Law firm membership and permission endpoints",
    "dependencies": ["users"],
}

__all__ = ["router"]
