"""設定データクラス"""

from dataclasses import dataclass, field


@dataclass
class DatabaseConfig:
    """データベース設定"""

    path: str


@dataclass
class ProviderConfig:
    """LLM プロバイダー設定

    Attributes:
        fast_model: 安価・高速なモデル ID（LiteLLM 形式）
        strong_model: 高性能なモデル ID（LiteLLM 形式）
        api_key: API キー（未指定なら LiteLLM の環境変数解決に任せる）
        api_base: API エンドポイント（OpenAI 互換バックエンド用）
        max_tokens: 1ターンあたりの最大出力トークン数
        temperature: 生成温度
    """

    fast_model: str
    strong_model: str
    api_key: str | None = None
    api_base: str | None = None
    max_tokens: int = 4096
    temperature: float = 0.7


@dataclass
class LLMConfig:
    """LLM 設定

    providers のうち active で指定した1つだけが使用される。
    """

    active: str
    providers: dict[str, ProviderConfig]

    @property
    def active_provider(self) -> ProviderConfig:
        """使用中のプロバイダー設定"""
        return self.providers[self.active]


@dataclass
class AgentConfig:
    """エージェントループ設定"""

    max_iterations: int = 10
    max_tokens: int = 4096
    temperature: float | None = None
    use_sub_modules: bool = True


@dataclass
class ContextBudgetConfig:
    """コンテキスト予算設定（トークン数）

    attachment_summaries と summaries は可変枠であり、
    safety_margin を掛けた値が実際の上限となる。
    """

    total_budget: int = 50000
    entity_state: int = 2000
    user_context: int = 1000
    participant_context: int = 500
    attachment_summaries: int = 3000
    summaries: int = 10000
    safety_margin: float = 0.8
    max_recent_messages: int = 50


@dataclass
class SummarizationConfig:
    """要約設定"""

    trigger_threshold: int = 30
    keep_recent_count: int = 10
    max_summary_tokens: int = 2000
    max_message_chars: int = 2000
    temperature: float = 0.3
    model: str | None = None


@dataclass
class RateLimitConfig:
    """ユーザー単位のレート制限設定"""

    enabled: bool = True
    max_requests: int = 100
    max_tokens: int = 500000
    window_seconds: int = 3600


@dataclass
class MetricsConfig:
    """メトリクス設定"""

    capacity: int = 10000


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None
    debug_llm_messages: bool = False


@dataclass
class Config:
    """アプリケーション設定"""

    database: DatabaseConfig
    llm: LLMConfig
    agent: AgentConfig = field(default_factory=AgentConfig)
    context: ContextBudgetConfig = field(default_factory=ContextBudgetConfig)
    summarization: SummarizationConfig = field(default_factory=SummarizationConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    logging: LoggingConfig | None = None
