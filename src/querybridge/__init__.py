"""querybridge — Backend-agnostic query translation for search engines and document stores.

Translate a generic filter payload (``limit``, ``offset``, ``sort``, ``search``,
``searchFields``, ``query``) into the native query of a storage backend, run it,
and get a uniform record list back.
"""

__version__ = "0.1.0"
