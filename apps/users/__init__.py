"""Users app package.

Holds the platform's account model. Travelers book resources, hosts own
services and their resources. Authentication itself (tokens, sessions) is
delegated to SimpleJWT; use ``apps.users.models.CustomUser`` as the
AUTH_USER_MODEL throughout the project.
"""
