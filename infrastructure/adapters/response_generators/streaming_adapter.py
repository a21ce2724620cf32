# infrastructure/adapters/response_generators/streaming_adapter.py
import logging
from threading import Thread
from typing import Iterator

from core.ports.response_generator_port import ResponseGeneratorPort

logger = logging.getLogger(__name__)


class StreamingResponseAdapter(ResponseGeneratorPort):
    def __init__(self, max_new_tokens: int = 5000, temperature: float = 0.7):
        self.max_new_tokens = max_new_tokens
        self.temperature = temperature

    def stream_response(self, prompt: str, model, tokenizer) -> Iterator[str]:
        from transformers import TextIteratorStreamer

        inputs = tokenizer(
            prompt,
            return_tensors="pt",
            padding=True,
            truncation=True,
            return_attention_mask=True
        ).to(model.device)

        streamer = TextIteratorStreamer(
            tokenizer,
            skip_prompt=True,
            skip_special_tokens=True
        )

        # Get pad token (use eos_token if not defined)
        pad_token = tokenizer.pad_token_id or tokenizer.eos_token_id

        generation_kwargs = dict(
            input_ids=inputs.input_ids,
            attention_mask=inputs.attention_mask,
            max_new_tokens=self.max_new_tokens,
            pad_token_id=pad_token,
            streamer=streamer
        )
        if self.temperature > 0:
            generation_kwargs.update(do_sample=True, temperature=self.temperature)

        thread = Thread(target=model.generate, kwargs=generation_kwargs, daemon=True)
        thread.start()

        generated = 0
        try:
            for new_text in streamer:
                generated += len(new_text)
                yield new_text
        finally:
            thread.join()
            logger.debug("Local generation finished, %d characters", generated)
