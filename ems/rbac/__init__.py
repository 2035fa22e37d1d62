"""Static RBAC definitions: permission catalog and reserved identities."""
