import logging
import threading

from sentence_transformers import CrossEncoder

logger = logging.getLogger(__name__)


class CrossEncoderReranker:
    """Relevance scorer using CrossEncoder models."""

    def __init__(
        self,
        model_name: str = "BAAI/bge-reranker-v2-m3",
        device: str = "cpu",
        batch_size: int = 32,
    ):
        """Initialize reranker. The model loads on first use.

        Args:
            model_name: HuggingFace model name.
            device: Torch device.
            batch_size: Pairs scored per forward pass.
        """
        self._model_name = model_name
        self._device = device
        self._batch_size = batch_size
        self._model: CrossEncoder | None = None
        self._load_lock = threading.Lock()

    @property
    def model(self) -> CrossEncoder:
        with self._load_lock:
            if self._model is None:
                logger.info(f"Loading reranker: {self._model_name}")
                self._model = CrossEncoder(self._model_name, device=self._device)
                logger.info("Reranker loaded")
            return self._model

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def score(self, query: str, texts: list[str]) -> list[float]:
        """Score texts against the query.

        Args:
            query: User query.
            texts: Candidate texts.

        Returns:
            One score per text, in input order.
        """
        if not texts:
            return []

        pairs = [[query, text] for text in texts]
        scores = self.model.predict(pairs, batch_size=self._batch_size)
        return [float(s) for s in scores]

    def unload(self) -> None:
        with self._load_lock:
            if self._model is not None:
                logger.info(f"Unloading reranker: {self._model_name}")
            self._model = None
