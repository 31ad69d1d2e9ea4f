"""
配置管理 - 使用Pydantic Settings实现环境变量管理
All tunables of the correction engine live here; nothing reads os.environ directly.
"""
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PatternStoreBackend(str, Enum):
    """Where learned patterns are persisted."""
    SQL = "sql"
    MEMORY = "memory"


class Settings(BaseSettings):
    """应用配置类 - 所有配置项通过环境变量管理"""

    # API配置
    api_v1_prefix: str = Field(default="/api/v1", description="API路由前缀")
    project_name: str = Field(default="Hebrew Correction Engine", description="项目名称")
    version: str = Field(default="1.0.0", description="版本号")

    # Generation service (OpenAI-compatible chat completions)
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI-compatible API key")
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="API base URL")
    generation_model: str = Field(default="gpt-4o-mini", description="Chat model used for suggestions")
    generation_max_tokens: int = Field(default=2048, description="Max tokens per suggestion request")
    generation_temperature: float = Field(default=0.7, description="Sampling temperature")
    generation_timeout: float = Field(default=30.0, description="Generation request timeout (seconds)")
    generation_max_attempts: int = Field(default=3, description="Attempts on transient connection errors")

    # 数据库配置
    database_url: str = Field(
        default="sqlite+aiosqlite:///./patterns.db",
        description="SQL 数据库连接字符串"
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    pattern_store_backend: PatternStoreBackend = Field(
        default=PatternStoreBackend.SQL,
        description="Pattern store implementation: sql or memory",
    )

    # Learning engine
    default_user_id: str = Field(default="default-user", description="User id when the caller sends none")
    forbidden_pattern_limit: int = Field(default=20, description="Patterns injected as avoid-constraints")
    max_phrase_length: int = Field(default=1000, gt=0, description="Longest bad or good phrase a pattern may hold")
    initial_confidence: float = Field(default=0.5, ge=0.0, le=1.0, description="Confidence of a new pattern")
    confidence_ceiling: float = Field(default=0.95, ge=0.0, le=1.0, description="Reinforcement never exceeds this")
    reinforcement_rate: float = Field(default=0.2, gt=0.0, le=1.0, description="Fraction of remaining headroom gained per reinforcement")
    alignment_search_radius: int = Field(default=5, ge=0, description="Token radius of the local alignment search")
    high_confidence_threshold: float = Field(default=0.8, description="Stats threshold for 'high confidence'")
    seconds_saved_per_correction: int = Field(default=30, description="Stats estimate per applied pattern")

    # Text analysis
    analysis_min_confidence: float = Field(default=0.7, ge=0.0, le=1.0, description="Issues and learned patterns below this are not acted on")
    analysis_pattern_limit: int = Field(default=50, ge=1, description="Learned patterns applied when reviewing a draft")

    # Logging
    log_level: str = Field(default="INFO", description="日志级别")
    json_logs: bool = Field(default=True, description="是否输出JSON格式日志")

    # CORS 配置
    cors_allow_origins: str = Field(default="http://localhost:3000", description="允许的跨域来源，逗号分隔")
    cors_allow_credentials: bool = Field(default=False, description="是否允许携带凭据")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # 忽略未定义的环境变量
    )

    @property
    def has_generation_credentials(self) -> bool:
        return bool(self.openai_api_key and self.openai_api_key.strip())

    def get_cors_origins(self) -> list[str]:
        """返回允许的 CORS 来源列表"""
        raw = (self.cors_allow_origins or "").strip()
        if not raw:
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    获取配置单例
    使用lru_cache确保全局只有一个Settings实例
    """
    return Settings()
