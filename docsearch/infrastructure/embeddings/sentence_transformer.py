import logging
import threading

import numpy as np
from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    def __init__(
        self, model_name: str = "intfloat/multilingual-e5-base", device: str = "cpu"
    ):
        self._model_name = model_name
        self._device = device
        self._model: SentenceTransformer | None = None
        self._load_lock = threading.Lock()

    @property
    def model(self) -> SentenceTransformer:
        with self._load_lock:
            if self._model is None:
                logger.info(f"Loading embedding model: {self._model_name}")
                self._model = SentenceTransformer(self._model_name, device=self._device)
            return self._model

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def encode(self, texts: str | list[str]) -> np.ndarray:
        return self.model.encode(texts, convert_to_numpy=True)

    def unload(self) -> None:
        with self._load_lock:
            if self._model is not None:
                logger.info(f"Unloading embedding model: {self._model_name}")
            self._model = None
