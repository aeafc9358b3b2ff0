#!/usr/bin/env python3
"""Commerce platform main configuration

Combines all sub-configs for the commerce microservices.
"""
import os
from dataclasses import dataclass, field

from .checkout_config import CheckoutConfig
from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .service_config import ServiceConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"


@dataclass
class CommerceConfig:
    """Main commerce configuration with all sub-configs"""

    # Environment
    environment: str = "development"
    debug: bool = False

    # Bind address; the port comes from each service's own config
    default_host: str = "0.0.0.0"

    # Sub-configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infrastructure: InfraConfig = field(default_factory=InfraConfig)
    services: ServiceConfig = field(default_factory=ServiceConfig)
    checkout: CheckoutConfig = field(default_factory=CheckoutConfig)

    @classmethod
    def from_env(cls) -> 'CommerceConfig':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            # Environment
            environment=env,
            debug=_bool(os.getenv("DEBUG", "true" if env == "development" else "false")),

            default_host=os.getenv("HOST", "0.0.0.0"),

            # Load sub-configs
            logging=LoggingConfig.from_env(),
            infrastructure=InfraConfig.from_env(),
            services=ServiceConfig.from_env(),
            checkout=CheckoutConfig.from_env(),
        )
