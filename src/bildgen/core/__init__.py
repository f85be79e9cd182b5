"""Core functionality for the generation gateway.

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with BILDGEN_ in .env files

2. **Request Pipeline** (gateway.py):
   - Rate limiting (rate_limiter.py)
   - Model key resolution (model_resolver.py)
   - Provider call (provider.py) and response decoding (provider_response.py)
   - Image persistence to the content directory

3. **Errors** (errors.py):
   - ValidationError, RateLimitError, UpstreamError
"""

from bildgen.core.config import BildgenConfig, config
from bildgen.core.errors import BildgenError, RateLimitError, UpstreamError, ValidationError
from bildgen.core.gateway import GenerationGateway, GenerationRequest, GenerationResult, StoredImage
from bildgen.core.model_resolver import ModelResolver
from bildgen.core.rate_limiter import RateLimiter

__all__ = [
    "BildgenConfig",
    "config",
    "BildgenError",
    "RateLimitError",
    "UpstreamError",
    "ValidationError",
    "GenerationGateway",
    "GenerationRequest",
    "GenerationResult",
    "StoredImage",
    "ModelResolver",
    "RateLimiter",
]
