"""
Startup Internship Connect
Connects a university's students with alumni-founded startups.

Architecture:
- PostgreSQL: startups, internship positions, applications, student profiles
- Hosted identity provider: sign-up/sign-in (tokens verified here)
- QueryCache: 60-second read-through cache invalidated by writes
"""

__version__ = "1.0.0"
