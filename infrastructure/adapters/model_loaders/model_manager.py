# infrastructure/adapters/model_loaders/model_manager.py
import logging
import threading

logger = logging.getLogger(__name__)


class ModelManager:
    """
    Loads a local causal language model once and hands out the cached copy.
    The DI container scopes one instance per application. torch and
    transformers come from the optional "local" extra and are imported on load.
    """

    def __init__(self):
        self._model = None
        self._tokenizer = None
        self._is_initialized = False
        self._is_initializing = False
        self._init_lock = threading.Lock()

    def initialize(self, model_name: str):
        """Initialize and load the model and tokenizer"""
        with self._init_lock:
            if self._is_initialized:
                logger.debug("Model already initialized, skipping initialization")
                return
            if self._is_initializing:
                logger.debug("Model initialization already in progress, skipping duplicate initialization")
                return
            logger.info("Starting model initialization: %s", model_name)
            self._is_initializing = True

        try:
            import torch
            from transformers import AutoModelForCausalLM, AutoTokenizer

            self._model = AutoModelForCausalLM.from_pretrained(
                model_name,
                torch_dtype=torch.bfloat16,
                trust_remote_code=True,
                device_map="auto"
            )
            self._tokenizer = AutoTokenizer.from_pretrained(
                model_name,
                padding_side="left"
            )
            if self._tokenizer.pad_token is None:
                self._tokenizer.pad_token = self._tokenizer.eos_token

            with self._init_lock:
                self._is_initialized = True
                self._is_initializing = False
            logger.info("Model %s loaded successfully", model_name)
        except Exception:
            with self._init_lock:
                self._is_initializing = False
            logger.error("Error loading model %s", model_name, exc_info=True)
            raise

    def get_model_and_tokenizer(self):
        if not self._is_initialized:
            raise ValueError("Model Manager not initialized. Call initialize() first.")
        return self._model, self._tokenizer

    def is_initialized(self):
        return self._is_initialized

    def is_initializing(self):
        return self._is_initializing
