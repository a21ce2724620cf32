# infrastructure/di/container.py
import os
from typing import Any, Dict, Optional

from dependency_injector import containers, providers

from application.use_cases.analysis import AnalysisUseCase
from application.use_cases.code_fix import CodeFixUseCase
from application.use_cases.conversation import ConversationUseCase
from core.domain.errors import ConfigError
from core.domain.models import ReviewConfig
from infrastructure.adapters.archives.zip_adapter import ZipArchiveAdapter
from infrastructure.adapters.chat_output.cli_adapter import CLIChatAdapter
from infrastructure.adapters.chat_output.web_adapter import WebChatAdapter
from infrastructure.adapters.file_handlers.local_file_adapter import LocalFileAdapter
from infrastructure.adapters.file_handlers.web_file_adapter import WebFileAdapter
from infrastructure.adapters.model_clients.gemini_adapter import GeminiModelAdapter
from infrastructure.adapters.model_clients.huggingface_client import HuggingFaceModelClient
from infrastructure.adapters.model_loaders.model_manager import ModelManager
from infrastructure.adapters.prompt_builders.conversation_adapter import ModelAwarePromptAdapter
from infrastructure.adapters.response_generators.streaming_adapter import StreamingResponseAdapter

DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "huggingface": "deepseek-ai/deepseek-coder-6.7b-instruct",
}

DEFAULT_CONFIG = {
    "context": "cli",
    "model_provider": "gemini",
    "model_name": None,
    "temperature": 0.2,
    "max_output_tokens": 65536,
    "max_upload_mb": 50,
    "session_timeout": 3600,
}


class Container(containers.DeclarativeContainer):
    config = providers.Configuration()

    # Optional dependencies
    socketio = providers.Dependency(instance_of=object)

    review_config = providers.Factory(
        ReviewConfig,
        model_name=config.model_name,
        temperature=config.temperature,
        max_output_tokens=config.max_output_tokens
    )

    # Model clients
    model_manager = providers.Singleton(ModelManager)

    gemini_client = providers.Singleton(
        GeminiModelAdapter,
        api_key=config.api_key,
        config=review_config
    )

    huggingface_client = providers.Singleton(
        HuggingFaceModelClient,
        model_manager=model_manager,
        prompt_builder=providers.Factory(ModelAwarePromptAdapter),
        response_generator=providers.Factory(
            StreamingResponseAdapter,
            temperature=config.temperature
        ),
        model_name=config.model_name
    )

    model_client = providers.Selector(
        config.model_provider,
        gemini=gemini_client,
        huggingface=huggingface_client
    )

    # Adapters
    archive = providers.Factory(ZipArchiveAdapter)

    file_handler = providers.Selector(
        config.context,
        cli=providers.Factory(LocalFileAdapter),
        web=providers.Factory(WebFileAdapter, max_upload_mb=config.max_upload_mb)
    )

    chat_output = providers.Selector(
        config.context,
        cli=providers.Factory(CLIChatAdapter),
        web=providers.Factory(WebChatAdapter, socketio=socketio)
    )

    # Use Cases
    analysis_uc = providers.Factory(AnalysisUseCase, model_client=model_client)
    code_fix_uc = providers.Factory(CodeFixUseCase, model_client=model_client)
    conversation_uc = providers.Factory(ConversationUseCase, model_client=model_client)


def build_container(overrides: Optional[Dict[str, Any]] = None) -> Container:
    """
    Create a container from defaults, the environment, and explicit overrides.

    Raises ConfigError for an unknown provider. A missing API key surfaces as
    ConfigError when the Gemini client is first built.
    """
    settings = dict(DEFAULT_CONFIG)
    settings.update({key: value for key, value in (overrides or {}).items() if value is not None})

    provider = settings["model_provider"]
    if provider not in DEFAULT_MODELS:
        raise ConfigError(f"Unknown model provider: {provider}")
    if not settings.get("model_name"):
        settings["model_name"] = DEFAULT_MODELS[provider]

    container = Container()
    container.config.from_dict(settings)
    if not settings.get("api_key"):
        container.config.api_key.from_env("API_KEY", default=os.environ.get("GEMINI_API_KEY"))
    return container
