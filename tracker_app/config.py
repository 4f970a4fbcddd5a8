from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


DEFAULT_IP_HASH_SALT = "default-salt-change-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """
    
    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    
    # Application
    app_name: str = "Link Tracker"
    app_version: str = "1.0.0"
    
    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    
    # Database (entities + access logs)
    database_url: str = "sqlite:///./link_tracker.db"
    
    # Public URLs
    base_url: str = "http://127.0.0.1:8000"  # Prefix of /r/<id> and /a/<slug>
    not_found_path: str = "/404"
    inactive_path: str = "/link-inativo"
    error_path: str = "/erro"
    
    # Privacy
    ip_hash_salt: str = DEFAULT_IP_HASH_SALT
    tracking_field_max_length: int = 500  # user-agent / referer truncation
    
    # GeoIP providers, tried in this order
    geo_providers: List[str] = ["ipwhois", "ipapi_co", "ip_api"]
    geo_timeout_seconds: float = 3.0  # per provider
    geo_total_timeout_seconds: float = 6.0  # whole chain, as seen by the redirect
    
    # Rendered QR cache
    cache_backend: str = "memory"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 3600
    
    # Access log delivery
    access_log_delivery: str = "background"  # Options: "background", "queue"
    queue_backend: str = "memory"  # Options: "redis_streams", "memory"
    queue_name: str = "access_logs"
    queue_consumer_group: str = "access_log_workers"
    queue_batch_size: int = 100
    queue_claim_idle_ms: int = 60000  # pending Redis entries older than this are reclaimed
    
    # Affiliate links
    affiliate_allowed_hosts: List[str] = ["shopee.com.br", "shope.ee"]
    affiliate_link_ttl_days: int = 7
    
    # Reports
    report_timezone: str = "America/Sao_Paulo"
    
    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
