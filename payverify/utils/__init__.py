"""
Utility modules for payment verification
"""
from .config_loader import ApiConfig, PollingConfig, VerificationConfig, load_verification_config

__all__ = [
    'ApiConfig',
    'PollingConfig',
    'VerificationConfig',
    'load_verification_config',
]
