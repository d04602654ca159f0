"""アプリケーションのエントリポイント"""

import argparse
import asyncio
import json
import logging
import sys
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path

from juicy.application.services import (
    AgenticLoop,
    BackgroundTaskRunner,
    ContextOrchestrator,
    MetricsRecorder,
    SummarizationEngine,
)
from juicy.application.use_cases import InvokeAgentRequest, InvokeAgentUseCase
from juicy.config import Config, ConfigError, LoggingConfig, load_config
from juicy.domain.entities.content import Role
from juicy.domain.entities.events import (
    ErrorEvent,
    TextEvent,
    ToolRequestedEvent,
    UsageSummaryEvent,
)
from juicy.domain.entities.message import StoredMessage
from juicy.domain.exceptions import QuotaExceededError
from juicy.domain.services import estimate_tokens
from juicy.infrastructure.llm import PromptBuilder, create_provider, model_tiers
from juicy.infrastructure.llm.strands import (
    ATTACHMENT_MAX_TOKENS,
    ATTACHMENT_TEMPERATURE,
    StrandsAttachmentAnalyzer,
    StrandsSummaryGenerator,
    create_model,
)
from juicy.infrastructure.persistence import (
    DatabaseManager,
    SQLiteAttachmentSummaryRepository,
    SQLiteEntityStateRepository,
    SQLiteMessageRepository,
    SQLiteParticipantRepository,
    SQLiteQuotaStore,
    SQLiteSummaryRepository,
    SQLiteUserContextRepository,
)
from juicy.infrastructure.tools import ToolRegistry

# Default logging for early startup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


LLM_LOGGER = "juicy.infrastructure.llm"


def _parse_level(name: str) -> int:
    """Resolve a level name, falling back to INFO for unknown names."""
    level = logging.getLevelName(name.upper())
    if isinstance(level, int):
        return level
    logger.warning("Unknown log level %r, using INFO", name)
    return logging.INFO


def configure_logging(config: LoggingConfig | None) -> None:
    """Apply the logging section of the config.

    Sets the root level and format, then per-logger overrides. With
    ``debug_llm_messages`` the LLM loggers are lowered to INFO so request
    sizes are shown even under a quieter root level; an explicit override
    for them still wins.

    Args:
        config: Logging configuration. If None, the startup defaults stay.
    """
    if config is None:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(_parse_level(config.level))
    formatter = logging.Formatter(config.format)
    for handler in root_logger.handlers:
        handler.setFormatter(formatter)

    overrides = dict(config.loggers or {})
    if config.debug_llm_messages:
        overrides.setdefault(LLM_LOGGER, "INFO")

    for name, level_name in overrides.items():
        logging.getLogger(name).setLevel(_parse_level(level_name))
        logger.debug("Logger %s set to %s", name, level_name.upper())


@dataclass
class Application:
    """組み立て済みの依存関係"""

    database: DatabaseManager
    runner: BackgroundTaskRunner
    metrics: MetricsRecorder
    message_repository: SQLiteMessageRepository
    summarization: SummarizationEngine
    use_case: InvokeAgentUseCase


def build_application(config: Config, tools: ToolRegistry | None = None) -> Application:
    """設定から依存関係を組み立てる

    Args:
        config: アプリケーション設定
        tools: モデルに提示するツール（None なら空のレジストリ）

    Returns:
        Application インスタンス
    """
    tools = tools or ToolRegistry()
    db_manager = DatabaseManager(config.database.path)
    session_factory = db_manager.get_session

    message_repository = SQLiteMessageRepository(session_factory)
    entity_state_repository = SQLiteEntityStateRepository(session_factory)
    summary_repository = SQLiteSummaryRepository(session_factory)
    attachment_summary_repository = SQLiteAttachmentSummaryRepository(session_factory)
    participant_repository = SQLiteParticipantRepository(session_factory)
    user_context_repository = SQLiteUserContextRepository(session_factory)
    quota_store = (
        SQLiteQuotaStore(session_factory, config.rate_limit)
        if config.rate_limit.enabled
        else None
    )

    debug_llm_messages = bool(config.logging and config.logging.debug_llm_messages)
    provider = create_provider(config.llm, debug_llm_messages=debug_llm_messages)
    provider_config = config.llm.active_provider

    summary_model_id = config.summarization.model or provider_config.fast_model
    summary_generator = StrandsSummaryGenerator(
        create_model(
            provider_config,
            summary_model_id,
            max_tokens=config.summarization.max_summary_tokens,
            temperature=config.summarization.temperature,
        ),
        config=config.summarization,
        model_name=summary_model_id,
    )
    attachment_analyzer = StrandsAttachmentAnalyzer(
        create_model(
            provider_config,
            provider_config.fast_model,
            max_tokens=ATTACHMENT_MAX_TOKENS,
            temperature=ATTACHMENT_TEMPERATURE,
        ),
        model_name=provider_config.fast_model,
    )

    runner = BackgroundTaskRunner()
    metrics = MetricsRecorder(config.metrics.capacity)
    summarization = SummarizationEngine(
        message_repository=message_repository,
        summary_repository=summary_repository,
        attachment_summary_repository=attachment_summary_repository,
        summary_generator=summary_generator,
        attachment_analyzer=attachment_analyzer,
        runner=runner,
        config=config.summarization,
    )
    orchestrator = ContextOrchestrator(
        message_repository=message_repository,
        entity_state_repository=entity_state_repository,
        summary_repository=summary_repository,
        attachment_summary_repository=attachment_summary_repository,
        participant_repository=participant_repository,
        user_context_repository=user_context_repository,
        config=config.context,
    )
    loop = AgenticLoop(
        provider=provider,
        tool_executor=tools,
        metrics=metrics,
        quota_store=quota_store,
        config=config.agent,
    )
    use_case = InvokeAgentUseCase(
        orchestrator=orchestrator,
        loop=loop,
        prompt_builder=PromptBuilder(use_sub_modules=config.agent.use_sub_modules),
        summarization=summarization,
        user_context_repository=user_context_repository,
        tiers=model_tiers(config.llm),
        tools=tools.definitions,
    )
    return Application(
        database=db_manager,
        runner=runner,
        metrics=metrics,
        message_repository=message_repository,
        summarization=summarization,
        use_case=use_case,
    )


def _new_message(chat_id: str, role: Role, text: str, sender: str | None) -> StoredMessage:
    return StoredMessage(
        id=str(uuid.uuid4()),
        chat_id=chat_id,
        role=role,
        content=text,
        created_at=datetime.now(timezone.utc),
        sender_address=sender,
        token_count=estimate_tokens(text),
    )


async def run_preview(app: Application, args: argparse.Namespace) -> None:
    """コンテキストのプレビューを表示"""
    context = await app.use_case.preview(args.chat_id, args.user_id)
    metadata = asdict(context.metadata)
    metadata["total_tokens"] = context.metadata.total_tokens
    metadata["budget_exceeded"] = context.metadata.budget_exceeded
    print(json.dumps(metadata, indent=2, ensure_ascii=False))


async def run_chat(app: Application, args: argparse.Namespace) -> int:
    """メッセージを保存してエージェントを呼び出す"""
    await app.message_repository.save(
        _new_message(args.chat_id, Role.USER, args.message, args.user_id)
    )

    request = InvokeAgentRequest(
        chat_id=args.chat_id,
        user_id=args.user_id,
        model=args.model,
        max_iterations=args.max_iterations,
    )
    reply: list[str] = []
    try:
        async for event in app.use_case.execute(request):
            if isinstance(event, TextEvent):
                reply.append(event.text)
                print(event.text, end="", flush=True)
            elif isinstance(event, ToolRequestedEvent):
                print(f"\n[{event.notice}]", flush=True)
            elif isinstance(event, ErrorEvent):
                print(f"\nError ({event.error_type}): {event.message}", file=sys.stderr)
                return 1
            elif isinstance(event, UsageSummaryEvent):
                print()
                logger.info(
                    "Usage: %d input / %d output tokens, %d iteration(s), %s",
                    event.input_tokens,
                    event.output_tokens,
                    event.iterations,
                    event.final_state.value,
                )
    except QuotaExceededError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if reply:
        await app.message_repository.save(
            _new_message(args.chat_id, Role.ASSISTANT, "".join(reply), None)
        )
    return 0


async def run_summarize(app: Application, args: argparse.Namespace) -> int:
    """会話の要約を即時実行"""
    summary = await app.summarization.summarize(args.chat_id)
    if summary is None:
        print("Nothing to summarize", file=sys.stderr)
        return 1
    print(summary.summary_text)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """CLIパーサーを作成"""
    parser = argparse.ArgumentParser(
        prog="juicy",
        description="Context-budgeted agent invocation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="config.yaml のパス (default: config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="コマンド")

    # preview
    preview_parser = subparsers.add_parser(
        "preview", help="次の呼び出しで使うコンテキストの内訳を表示"
    )
    preview_parser.add_argument("chat_id", help="会話 ID")
    preview_parser.add_argument("--user-id", help="ユーザー ID")

    # chat
    chat_parser = subparsers.add_parser("chat", help="メッセージを送信して応答を表示")
    chat_parser.add_argument("chat_id", help="会話 ID")
    chat_parser.add_argument("message", help="送信するメッセージ")
    chat_parser.add_argument("--user-id", help="ユーザー ID")
    chat_parser.add_argument(
        "--model", help='モデル指定 ("fast" / "strong" またはモデル ID)'
    )
    chat_parser.add_argument("--max-iterations", type=int, help="反復上限")

    # summarize
    summarize_parser = subparsers.add_parser("summarize", help="会話の要約を実行")
    summarize_parser.add_argument("chat_id", help="会話 ID")

    return parser


async def main(argv: list[str] | None = None) -> int:
    """アプリケーションを起動する"""
    parser = create_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    config_path = Path(args.config)
    if not config_path.exists():
        logger.error("%s not found", config_path)
        return 1

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("Failed to load config: %s", e)
        return 1

    configure_logging(config.logging)

    app = build_application(config)
    await app.database.create_tables()

    try:
        if args.command == "preview":
            await run_preview(app, args)
            return 0
        if args.command == "chat":
            return await run_chat(app, args)
        return await run_summarize(app, args)
    finally:
        await app.runner.shutdown()
        await app.database.close()


def run() -> None:
    """Run the async main function."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    run()
