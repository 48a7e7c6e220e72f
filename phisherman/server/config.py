#!/usr/bin/env python3
"""
Server Configuration

Settings for the HTTP API: bind address, static SPA bundle, CORS origins and
whether to seed the demo organisation on startup.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

TRUE_VALUES = ('1', 'true', 'yes', 'on')


class ServerConfig:
    """Configuration class for the API server."""

    def __init__(self,
                 host: Optional[str] = None,
                 port: Optional[int] = None,
                 static_dir: Optional[str] = None,
                 seed: Optional[bool] = None):
        # Load from environment variables with sensible defaults
        self.host = host or os.getenv('PHISHERMAN_HOST', '0.0.0.0')
        self.port = port or int(os.getenv('PHISHERMAN_PORT', '3000'))
        self.static_dir = Path(static_dir or os.getenv('PHISHERMAN_STATIC_DIR', 'dist'))
        self.cors_origins = self._parse_origins(os.getenv('PHISHERMAN_CORS_ORIGINS', '*'))
        if seed is None:
            seed = os.getenv('PHISHERMAN_SEED', 'true').strip().lower() in TRUE_VALUES
        self.seed = seed
        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    @staticmethod
    def _parse_origins(value: str) -> List[str]:
        origins = [origin.strip() for origin in value.split(',') if origin.strip()]
        return origins or ['*']

    @property
    def serves_static(self) -> bool:
        """True when a built SPA bundle is available to serve."""
        return (self.static_dir / 'index.html').is_file()
