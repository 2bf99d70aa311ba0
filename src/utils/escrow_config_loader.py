"""
Escrow configuration loader (payment gateway, callback, amount cache).

Values come from config/escrow_config.yml when it exists and are then
overridden by environment variables, so deployments only need a .env file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "escrow_config.yml"


class GatewayConfig(BaseModel):
    mode: Literal["mock", "real"] = "mock"
    merchant_id: str = ""
    sandbox: bool = True
    sandbox_base_url: str = "https://sandbox.zarinpal.com"
    live_base_url: str = "https://payment.zarinpal.com"
    request_path: str = "/pg/v4/payment/request.json"
    verify_path: str = "/pg/v4/payment/verify.json"
    start_pay_path: str = "/pg/StartPay"
    currency: str = "IRT"
    timeout_seconds: float = Field(default=20.0, gt=0, le=300)

    @property
    def base_url(self) -> str:
        return (self.sandbox_base_url if self.sandbox else self.live_base_url).rstrip("/")


class CallbackConfig(BaseModel):
    base_url: str = "http://localhost:8000"
    verify_path: str = "/api/payment-verify"

    def url_for(self, contract_id: str) -> str:
        return f"{self.base_url.rstrip('/')}{self.verify_path}?contractId={contract_id}"


class CacheConfig(BaseModel):
    backend: Literal["memory", "redis"] = "memory"
    redis_url: Optional[str] = None
    ttl_seconds: int = Field(default=86400, ge=60)


class EscrowConfig(BaseModel):
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    callback: CallbackConfig = Field(default_factory=CallbackConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_overrides() -> Dict[str, Dict[str, Any]]:
    gateway: Dict[str, Any] = {}
    callback: Dict[str, Any] = {}
    cache: Dict[str, Any] = {}

    mode = os.getenv("INTEGRATIONS_MODE", "").strip().lower()
    if mode in {"real", "live"}:
        gateway["mode"] = "real"
    elif mode in {"mock", "test"}:
        gateway["mode"] = "mock"

    if os.getenv("ESCROW_MERCHANT_ID"):
        gateway["merchant_id"] = os.environ["ESCROW_MERCHANT_ID"].strip()
        # A merchant id without an explicit mode means we talk to the real gateway.
        gateway.setdefault("mode", "real")
    if os.getenv("ESCROW_GATEWAY_SANDBOX"):
        gateway["sandbox"] = _truthy(os.environ["ESCROW_GATEWAY_SANDBOX"])
    if os.getenv("ESCROW_GATEWAY_TIMEOUT"):
        gateway["timeout_seconds"] = float(os.environ["ESCROW_GATEWAY_TIMEOUT"])
    if os.getenv("ESCROW_CURRENCY"):
        gateway["currency"] = os.environ["ESCROW_CURRENCY"].strip()

    if os.getenv("ESCROW_CALLBACK_BASE_URL"):
        callback["base_url"] = os.environ["ESCROW_CALLBACK_BASE_URL"].strip()

    if os.getenv("REDIS_URL"):
        cache["backend"] = "redis"
        cache["redis_url"] = os.environ["REDIS_URL"].strip()
    if os.getenv("ESCROW_CACHE_TTL"):
        cache["ttl_seconds"] = int(os.environ["ESCROW_CACHE_TTL"])

    return {"gateway": gateway, "callback": callback, "cache": cache}


def load_escrow_config(config_path: Optional[Path] = None, *, use_env: bool = True) -> EscrowConfig:
    """
    Load and validate escrow configuration.

    Args:
        config_path: YAML file to read. Defaults to config/escrow_config.yml;
            a missing file just means "use defaults".
        use_env: Apply environment variable overrides on top of the file.

    Raises:
        ValidationError: If the merged config doesn't match the schema
    """
    path = config_path or _DEFAULT_CONFIG_PATH
    data: Dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    elif config_path is not None:
        raise FileNotFoundError(f"Escrow config file not found: {config_path}")

    if use_env:
        for section, overrides in _env_overrides().items():
            if overrides:
                data.setdefault(section, {})
                data[section] = {**(data[section] or {}), **overrides}

    try:
        cfg = EscrowConfig(**data)
    except ValidationError as e:
        logger.error("Escrow config validation failed: %s", e)
        raise

    if cfg.gateway.mode == "real" and not cfg.gateway.merchant_id:
        logger.warning("Gateway mode is 'real' but no merchant id is configured.")
    logger.info(
        "Escrow config loaded (gateway=%s sandbox=%s cache=%s)",
        cfg.gateway.mode, cfg.gateway.sandbox, cfg.cache.backend,
    )
    return cfg
