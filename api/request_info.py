"""
Client identification from request headers.
"""

from fastapi import Request


def get_client_ip(request: Request, trusted_headers=None) -> str:
    """
    Client address from the first trusted proxy header present, else the peer.

    x-forwarded-for may hold a chain; its first hop is the client.
    """
    for header in trusted_headers or []:
        value = request.headers.get(header)
        if value:
            first = value.split(',')[0].strip()
            if first:
                return first
    if request.client:
        return request.client.host
    return ''


def get_user_agent(request: Request) -> str:
    return request.headers.get('user-agent', '')
