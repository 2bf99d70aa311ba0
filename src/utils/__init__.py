"""
Utility modules for the escrow service
"""
from .escrow_config_loader import EscrowConfig, load_escrow_config
from .tokens import generate_code, generate_token

__all__ = [
    'EscrowConfig',
    'load_escrow_config',
    'generate_code',
    'generate_token',
]
