"""Generation backends.

Import concrete providers from submodules; most callers only need
create_provider() and the Provider interface.
"""

from askai.providers.base import Provider
from askai.providers.factory import create_provider, is_supported, supported_providers
from askai.providers.response_processor import ResponseProcessor, process_response

__all__ = [
    "Provider",
    "create_provider",
    "is_supported",
    "supported_providers",
    "ResponseProcessor",
    "process_response",
]
