# infrastructure/adapters/chat_output/cli_adapter.py
import sys

from core.ports.chat_output_port import ChatOutputPort


class CLIChatAdapter(ChatOutputPort):
    """Terminal output; streamed replies are written as they arrive"""

    def display_message(self, message: str):
        print(message)

    def stream_chunk(self, chunk: str):
        print(chunk, end="", flush=True)

    def complete(self):
        print()

    def error(self, message: str):
        print(f"\n[error] {message}", file=sys.stderr)

    def get_user_input(self, prompt: str) -> str:
        return input(prompt).strip()
