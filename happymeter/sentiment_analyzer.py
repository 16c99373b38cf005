"""Sentiment analysis with a pre-trained RoBERTa sentiment model."""
import asyncio
import logging
import math
from typing import Callable, Dict, Optional

from config import config
from models import Sentiment
from schemas import AnalysisResult

logger = logging.getLogger(__name__)

Probabilities = Dict[str, float]
Predictor = Callable[[str], Probabilities]

CLASSES = ("positive", "negative", "neutral")  # tie-break priority order

LABELS = {
    "positive": Sentiment.GOOD,
    "negative": Sentiment.BAD,
    "neutral": Sentiment.NEUTRAL,
}


def score_sentiment(probs: Probabilities) -> AnalysisResult:
    """Map per-class probabilities to a label, signed score and confidence.

    The winning class is the arg-max; on an exact tie positive beats
    negative and negative beats neutral. The signed score is
    ``round((positive - negative) * 10)`` with halves rounded up.

    Args:
        probs: Probabilities keyed by positive, negative and neutral

    Returns:
        AnalysisResult with label, score, confidence and the probabilities
    """
    values = {name: float(probs.get(name, 0.0)) for name in CLASSES}

    winner = CLASSES[0]
    for name in CLASSES[1:]:
        if values[name] > values[winner]:
            winner = name

    score = math.floor((values["positive"] - values["negative"]) * 10 + 0.5)
    score = max(-10, min(10, score))

    return AnalysisResult(
        label=LABELS[winner],
        score=score,
        confidence_score=f"{values[winner]:.4f}",
        probs=values
    )


class RobertaPredictor:
    """Runs a sequence-classification model and returns softmax probabilities."""

    def __init__(self, model_name: str, max_tokens: int = 512):
        # torch and transformers are imported on first load
        import torch
        from transformers import AutoTokenizer, AutoModelForSequenceClassification

        logger.info(f"Loading sentiment model {model_name}...")
        self._torch = torch
        self.tokenizer = AutoTokenizer.from_pretrained(model_name)
        self.model = AutoModelForSequenceClassification.from_pretrained(model_name)
        self.model.eval()  # Set to evaluation mode
        self.max_tokens = max_tokens
        self.id2label = {
            int(idx): label.lower() for idx, label in self.model.config.id2label.items()
        }
        logger.info(f"Sentiment model {model_name} loaded successfully")

    def __call__(self, text: str) -> Probabilities:
        inputs = self.tokenizer(
            text,
            return_tensors="pt",
            truncation=True,
            max_length=self.max_tokens
        )

        with self._torch.no_grad():
            outputs = self.model(**inputs)
            predictions = self._torch.nn.functional.softmax(outputs.logits, dim=-1)[0]

        probs = {name: 0.0 for name in CLASSES}
        for idx, value in enumerate(predictions.tolist()):
            label = self.id2label.get(idx)
            if label in probs:
                probs[label] = value
        return probs


def load_predictor(model_name: str) -> Predictor:
    return RobertaPredictor(model_name, max_tokens=config.SENTIMENT_MAX_TOKENS)


class SentimentClassifier:
    """Lazily-loaded, process-wide sentiment classifier.

    The model is loaded at most once. Concurrent first callers await the same
    pending load; a failed load is cleared so the next call retries it.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        loader: Callable[[str], Predictor] = load_predictor
    ):
        self.model_name = model_name or config.SENTIMENT_MODEL
        self._loader = loader
        self._predictor: Optional[Predictor] = None
        self._loading: Optional[asyncio.Future] = None

    @property
    def ready(self) -> bool:
        return self._predictor is not None

    async def _get_predictor(self) -> Predictor:
        if self._predictor is not None:
            return self._predictor

        if self._loading is None:
            self._loading = asyncio.ensure_future(
                asyncio.to_thread(self._loader, self.model_name)
            )
        loading = self._loading

        try:
            # Shielded so a cancelled caller does not abort the shared load
            predictor = await asyncio.shield(loading)
        except Exception as e:
            if self._loading is loading:
                logger.error(f"Failed to load sentiment model {self.model_name}: {e}")
                self._loading = None
            raise

        self._predictor = predictor
        return predictor

    async def warmup(self) -> None:
        """Force the model load ahead of the first request."""
        await self._get_predictor()

    async def classify(self, text: str) -> Probabilities:
        """Return positive/negative/neutral probabilities for the text."""
        predictor = await self._get_predictor()
        return await asyncio.to_thread(predictor, text)

    async def analyze(self, text: str) -> AnalysisResult:
        probs = await self.classify(text)
        result = score_sentiment(probs)
        logger.debug(f"Sentiment: {result.label.value} (score: {result.score}, confidence: {result.confidence_score})")
        return result


classifier = SentimentClassifier()


def get_classifier() -> SentimentClassifier:
    """Dependency returning the shared classifier."""
    return classifier
