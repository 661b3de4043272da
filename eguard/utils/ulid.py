"""ULID generation for eGuard request correlation.

Every response short-circuited by the host integration carries an
``X-EGuard-Request-ID`` header whose value is also bound as the log
``request_id``. ULIDs are 26-character, Crockford Base32, URL-safe and
lexicographically sortable by creation time.

Uses the ``python-ulid`` library; do NOT hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Example::

        request_id = generate_ulid()
        # "01KJ0JRVHYA7KX32VPN5ZSCTMV"
        assert len(request_id) == 26
    """
    return str(ULID())
