"""
Request helpers shared by authentication, middleware and error handling.

Kept free of DRF imports: DRF loads the authentication backends while it
imports its views, and those backends import from here.
"""


def get_client_ip(request):
    """Client address, preferring the first X-Forwarded-For hop."""
    if not request:
        return 'unknown'

    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', 'unknown')
