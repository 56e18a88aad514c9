"""HTTP transport for pokecatalog.

Provides :class:`Transport`, an :mod:`httpx`-backed client that performs
one GET per call, decodes the body into a Pydantic model and maps failures
into the :mod:`pokecatalog.exceptions` taxonomy.

Example::

    from pokecatalog.client import Transport
    from pokecatalog.models import DetailRecord

    async with Transport() as transport:
        detail = await transport.fetch("/pokemon/25", DetailRecord)
"""

from pokecatalog.client.transport import DEFAULT_BASE_URL, Transport

__all__ = ["DEFAULT_BASE_URL", "Transport"]
