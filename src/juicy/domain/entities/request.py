"""Provider request entity."""

from dataclasses import dataclass

from juicy.domain.entities.content import ChatMessage
from juicy.domain.entities.tool import ToolDefinition


@dataclass(frozen=True)
class ProviderRequest:
    """プロバイダーへの1ターン分のリクエスト

    Attributes:
        model: モデル ID
        messages: メッセージ列（古い順）
        system: システムプロンプト
        tools: ツール定義
        max_tokens: 最大出力トークン数
        temperature: 生成温度（None ならプロバイダー既定値）
        api_key: 呼び出し元が持ち込んだ API キー（None なら設定値）
    """

    model: str
    messages: tuple[ChatMessage, ...]
    system: str | None = None
    tools: tuple[ToolDefinition, ...] = ()
    max_tokens: int = 4096
    temperature: float | None = None
    api_key: str | None = None
