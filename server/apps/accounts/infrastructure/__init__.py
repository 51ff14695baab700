"""Infrastructure layer for accounts app.

Adapters between session logic and Django:
- Refresh token persistence (ORM)
- User lookup and password verification (django.contrib.auth)
"""
