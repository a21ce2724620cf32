# infrastructure/adapters/prompt_builders/conversation_adapter.py
from typing import Sequence

from core.domain.models import ChatMessage
from core.ports.prompt_builder_port import PromptBuilderPort

# chat templates expect "assistant" where the review pipeline says "model"
_TEMPLATE_ROLES = {"user": "user", "model": "assistant"}


class ModelAwarePromptAdapter(PromptBuilderPort):
    def build_prompt(self, history: Sequence[ChatMessage], tokenizer) -> str:
        messages = [{"role": _TEMPLATE_ROLES.get(msg.role, msg.role), "content": msg.content} for msg in history]

        if getattr(tokenizer, "chat_template", None) is not None:
            return tokenizer.apply_chat_template(
                messages,
                tokenize=False,
                add_generation_prompt=True
            )

        return self._build_fallback_prompt(messages)

    def _build_fallback_prompt(self, messages: list) -> str:
        prompt = ""
        for msg in messages:
            prompt += f"{msg['role'].capitalize()}: {msg['content']}\n"
        return prompt + "Assistant: "
